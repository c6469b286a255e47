# KuliahBot - Course Schedule Assistant for Discord
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Notification Sink

"Deliver text to chat X" and "deliver text to every known chat", on top of
the Discord client.

Broadcasts iterate a snapshot of the known chats. A failure for one chat is
logged and recorded in the report, and delivery carries on for the rest.
Each send is bounded by a timeout; there is no retry loop.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

import discord

from analytics import track

if TYPE_CHECKING:
    from discord.ext.commands import Bot

logger = logging.getLogger("kuliahbot.delivery.sink")

# Discord message length limit
DISCORD_MAX_LENGTH = 2000


class DeliveryError(Exception):
    """Raised when a message cannot be delivered to one chat."""

    def __init__(self, chat_id: int, reason: str):
        super().__init__(f"Delivery to chat {chat_id} failed: {reason}")
        self.chat_id = chat_id
        self.reason = reason


@dataclass
class BroadcastReport:
    """Outcome of one broadcast."""

    delivered: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def chunk_message(content: str, limit: int = DISCORD_MAX_LENGTH) -> list[str]:
    """Split a message at paragraph, line, or word boundaries to fit the limit."""
    chunks = []
    remaining = content

    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break

        break_at = limit
        for separator in ("\n\n", "\n", " "):
            idx = remaining.rfind(separator, 0, limit)
            if idx > limit // 2:
                break_at = idx + len(separator)
                break

        chunks.append(remaining[:break_at].rstrip())
        remaining = remaining[break_at:].lstrip()

    return chunks


class NotificationSink:
    """
    Base sink. Subclasses provide known_chats() and _deliver().

    send() and broadcast() add the timeout and per-recipient isolation.
    """

    def __init__(self, send_timeout: float = 10.0):
        self.send_timeout = send_timeout

    def known_chats(self) -> list[int]:
        """Snapshot of the chats a broadcast should reach."""
        raise NotImplementedError

    async def _deliver(self, chat_id: int, text: str) -> None:
        raise NotImplementedError

    async def send(self, chat_id: int, text: str) -> None:
        """
        Send text to one chat.

        Raises:
            DeliveryError: If the transport rejects the message or times out
        """
        try:
            await asyncio.wait_for(self._deliver(chat_id, text), timeout=self.send_timeout)
        except asyncio.TimeoutError as e:
            raise DeliveryError(chat_id, f"timed out after {self.send_timeout}s") from e

    async def broadcast(self, text: str) -> BroadcastReport:
        """Send text to every known chat. Never raises for a single recipient."""
        report = BroadcastReport()
        chats = list(self.known_chats())

        if not chats:
            logger.info("Broadcast skipped: no known chats")
            return report

        for chat_id in chats:
            try:
                await self.send(chat_id, text)
                report.delivered.append(chat_id)
            except DeliveryError as e:
                logger.warning(str(e))
                report.failed[chat_id] = e.reason
            except Exception as e:
                logger.error(f"Unexpected error delivering to chat {chat_id}: {e}", exc_info=True)
                report.failed[chat_id] = str(e)[:200]

        if report.failed:
            track(
                "delivery_error",
                "delivery",
                properties={
                    "failed": len(report.failed),
                    "delivered": len(report.delivered),
                },
            )
        return report


class DiscordSink(NotificationSink):
    """
    Sink backed by a discord.py client.

    Known chats are the client's cached DM channels, the configured broadcast
    channels, and any channel that has sent the bot a command.
    """

    def __init__(
        self,
        client: "Bot",
        broadcast_channel_ids: Iterable[int] = (),
        send_timeout: float = 10.0,
    ):
        super().__init__(send_timeout=send_timeout)
        self.client = client
        self._configured = set(broadcast_channel_ids)
        self._seen: set[int] = set()

    def remember_chat(self, chat_id: int) -> None:
        """Add a chat to the broadcast set (for the life of this process)."""
        if chat_id not in self._seen:
            logger.info(f"Now broadcasting to chat {chat_id}")
        self._seen.add(chat_id)

    def known_chats(self) -> list[int]:
        chats = set(self._configured) | self._seen
        chats.update(
            channel.id
            for channel in self.client.private_channels
            if isinstance(channel, discord.DMChannel)
        )
        return sorted(chats)

    async def _deliver(self, chat_id: int, text: str) -> None:
        channel = self.client.get_channel(chat_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(chat_id)
            except discord.NotFound as e:
                raise DeliveryError(chat_id, "channel not found") from e
            except discord.Forbidden as e:
                raise DeliveryError(chat_id, "no access to channel") from e
            except discord.HTTPException as e:
                raise DeliveryError(chat_id, f"fetch failed: {e}") from e

        try:
            for chunk in chunk_message(text):
                await channel.send(chunk)
        except discord.Forbidden as e:
            raise DeliveryError(chat_id, "missing permission to send") from e
        except discord.HTTPException as e:
            raise DeliveryError(chat_id, f"send failed: {e}") from e
