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
Course Slash Commands

Discord application commands for the timetable and assignment list. They
share the text command semantics: every handler delegates to the
CommandInterpreter.
"""

import logging
from typing import Awaitable, Callable, Optional

import discord
from discord import app_commands
from discord.ext import commands

from analytics import track
from kuliah.interpreter import CommandInterpreter
from kuliah.models import WEEKDAYS

logger = logging.getLogger("kuliahbot.commands.kuliah")

DAY_CHOICES = [app_commands.Choice(name=day, value=day) for day in WEEKDAYS]


class KuliahCommands(commands.Cog):
    """
    Slash commands for the course assistant.

    Commands:
    - /jadwal [hari] - Class schedule for today or a given day
    - /tugas list - List assignments
    - /tugas add - Add an assignment
    - /tugas remove - Remove an assignment by ID
    """

    tugas_group = app_commands.Group(
        name="tugas",
        description="Kelola daftar tugas kuliah",
    )

    def __init__(self, bot: commands.Bot, interpreter: CommandInterpreter):
        self.bot = bot
        self.interpreter = interpreter

    async def _respond(
        self,
        interaction: discord.Interaction,
        command_name: str,
        operation: Callable[[], Awaitable[str]],
    ) -> None:
        # The operation is only started once the interaction is acknowledged.
        await interaction.response.defer()

        track(
            "command_used",
            "command",
            chat_id=interaction.channel_id,
            user_id=interaction.user.id,
            properties={"command_name": command_name, "surface": "slash"},
        )

        sink = getattr(self.bot, "sink", None)
        if sink is not None and interaction.channel_id is not None:
            sink.remember_chat(interaction.channel_id)

        reply = await self.interpreter.safe_reply(operation(), chat_id=interaction.channel_id)
        await interaction.followup.send(reply)

    @app_commands.command(name="jadwal", description="Lihat jadwal kuliah")
    @app_commands.describe(hari="Hari yang ingin dilihat (default: hari ini)")
    @app_commands.choices(hari=DAY_CHOICES)
    async def jadwal(
        self,
        interaction: discord.Interaction,
        hari: Optional[app_commands.Choice[str]] = None,
    ):
        """Show the class schedule."""
        day = hari.value if hari else None
        await self._respond(interaction, "jadwal", lambda: self.interpreter.schedule_for(day))

    @tugas_group.command(name="list", description="Lihat daftar tugas")
    async def list_tugas(self, interaction: discord.Interaction):
        """List all assignments."""
        await self._respond(interaction, "tugas list", self.interpreter.list_assignments)

    @tugas_group.command(name="add", description="Tambah tugas baru")
    @app_commands.describe(
        judul="Judul tugas",
        matkul="Mata kuliah",
        deadline="Tenggat (teks bebas, mis. 'Jumat 23:59')",
        tugas_id="ID unik tugas, dipakai untuk menghapus",
    )
    @app_commands.rename(tugas_id="id")
    async def add_tugas(
        self,
        interaction: discord.Interaction,
        judul: str,
        matkul: str,
        deadline: str,
        tugas_id: str,
    ):
        """Add an assignment."""
        await self._respond(
            interaction,
            "tugas add",
            lambda: self.interpreter.add_assignment(judul, matkul, deadline, tugas_id),
        )

    @tugas_group.command(name="remove", description="Hapus tugas berdasarkan ID")
    @app_commands.describe(tugas_id="ID tugas yang akan dihapus")
    @app_commands.rename(tugas_id="id")
    async def remove_tugas(self, interaction: discord.Interaction, tugas_id: str):
        """Remove assignments by ID."""
        await self._respond(
            interaction,
            "tugas remove",
            lambda: self.interpreter.remove_assignment(tugas_id),
        )


async def setup(bot: commands.Bot):
    """Add the cog to the bot. Expects the bot to expose `interpreter`."""
    await bot.add_cog(KuliahCommands(bot, bot.interpreter))
