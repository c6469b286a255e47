"""
KuliahBot Discord Bot

Course-schedule assistant: answers /jadwal and /tugas, sends the morning
digest and upcoming-class alerts, auto-replies to "ping", and turns image
attachments into stickers.

The bot object is the process root. It owns the store, interpreter, sink and
reminder scheduler and passes them explicitly to whoever needs them; the
connection supervisor drives the gateway session around it.
"""

import asyncio
import io
import logging
import os
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

import analytics
from commands import kuliah_commands
from delivery.connection import ConnectionState, ConnectionSupervisor
from delivery.sink import DeliveryError, DiscordSink
from delivery.stickers import MAX_IMAGE_BYTES, StickerError, build_sticker, is_supported_image
from kuliah.config import BotConfig
from kuliah.interpreter import CommandInterpreter
from kuliah.store import KuliahStore
from reminders.ledger import FiredLedger
from reminders.scheduler import ReminderScheduler

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("kuliahbot")

PING_REPLY = "pong ✅"


class KuliahBot(commands.Bot):
    """Discord bot wiring the course engine to the chat transport."""

    def __init__(self, config: BotConfig):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        super().__init__(command_prefix="!", intents=intents)

        self.config = config
        self.store = KuliahStore(config.data_path, timeout=config.store_timeout_seconds)
        self.interpreter = CommandInterpreter(self.store, config.tz)
        self.sink = DiscordSink(
            self,
            broadcast_channel_ids=config.broadcast_channel_ids,
            send_timeout=config.send_timeout_seconds,
        )
        self.scheduler = ReminderScheduler(
            self.store,
            self.sink,
            config,
            ledger=FiredLedger(config.state_path),
        )
        self.supervisor: Optional[ConnectionSupervisor] = None
        self._setup_done = False

    def attach_supervisor(self, supervisor: ConnectionSupervisor) -> None:
        """Let the connection state gate the reminder scheduler."""
        self.supervisor = supervisor
        supervisor.add_listener(self._on_connection_state)

    def _on_connection_state(self, old: ConnectionState, new: ConnectionState) -> None:
        self.scheduler.set_active(new == ConnectionState.OPEN)

    async def setup_hook(self):
        """
        Called on every login.

        close() removes every cog, so the course commands are re-added on
        each epoch. Syncing and the scheduler start happen only once.
        """
        if self.get_cog("KuliahCommands") is None:
            await kuliah_commands.setup(self)

        if self._setup_done:
            return

        logger.info(f"Setup: data={self.config.data_path} state={self.config.state_path}")
        logger.info(f"Setup: timezone={self.config.timezone} digest='{self.config.digest_cron}'")
        logger.info(f"Setup: broadcast channels={list(self.config.broadcast_channel_ids)}")

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} application command(s)")
        except discord.HTTPException as e:
            logger.warning(f"Failed to sync application commands: {e}")

        self.scheduler.start()
        self._setup_done = True

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")
        if self.supervisor:
            self.supervisor.mark_open()

    async def on_resumed(self):
        if self.supervisor:
            self.supervisor.mark_open()

    async def on_message(self, message: discord.Message):
        """Route inbound messages: ping auto-reply, stickers, then commands."""
        if message.author == self.user or message.author.bot:
            return

        text = message.content or ""
        chat_id = message.channel.id

        if text.strip().lower() == "ping":
            await self._reply(chat_id, PING_REPLY)

        if self.config.stickers_enabled and message.attachments:
            await self._process_image_attachments(message)

        if text.lstrip().startswith("/"):
            self.sink.remember_chat(chat_id)
            reply = await self.interpreter.handle(text, chat_id=chat_id)
            if reply:
                await self._reply(chat_id, reply)

    async def _reply(self, chat_id: int, text: str) -> None:
        try:
            await self.sink.send(chat_id, text)
        except DeliveryError as e:
            logger.warning(f"Reply not delivered: {e}")

    async def _process_image_attachments(self, message: discord.Message):
        """Send each supported image back as a sticker."""
        for attachment in message.attachments:
            if not is_supported_image(attachment.filename):
                logger.debug(f"[STICKER] Skipping unsupported format: {attachment.filename}")
                continue
            if attachment.size > MAX_IMAGE_BYTES:
                logger.info(f"[STICKER] Image too large: {attachment.filename} ({attachment.size} bytes)")
                continue

            try:
                image_bytes = await attachment.read()
                sticker = await build_sticker(image_bytes)
                await message.channel.send(
                    file=discord.File(io.BytesIO(sticker), filename="sticker.webp")
                )
                logger.info(f"[STICKER] Sent sticker for {attachment.filename} to chat {message.channel.id}")
            except (StickerError, discord.HTTPException) as e:
                logger.warning(f"[STICKER] Failed for {attachment.filename}: {e}")

    async def shutdown(self) -> None:
        """Stop the scheduler and release resources. Store writes are drained first."""
        self.scheduler.stop()
        if self.supervisor:
            await self.supervisor.stop()
        else:
            await self.store.drain()
            await self.close()
        await analytics.shutdown()


async def main():
    """Run the bot until interrupted or logged out."""
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    config = BotConfig.from_env()
    bot = KuliahBot(config)
    supervisor = ConnectionSupervisor(
        bot,
        token,
        base_delay=config.reconnect_base_seconds,
        max_delay=config.reconnect_max_seconds,
        on_close=bot.store.drain,
    )
    bot.attach_supervisor(supervisor)

    try:
        await supervisor.run()
        if supervisor.state == ConnectionState.LOGGED_OUT:
            logger.error("Bot token rejected. Update DISCORD_BOT_TOKEN and restart.")
    finally:
        await bot.shutdown()


def run():
    """Console entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    run()
