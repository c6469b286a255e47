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
Command Interpreter

Parses "/"-prefixed chat text into commands that query or mutate the course
store, and produces the reply text.

Commands:
- /jadwal [hari]          - Today's (or the named day's) classes
- /tugas                  - List assignments
- /tugas add a,b,c,d      - Add assignment: judul,matkul,deadline,id
- /tugas remove <id>      - Remove assignments with that id
- /bantuan                - Command list
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

import pytz

from analytics import track

from .models import WEEKDAYS, Assignment, weekday_name
from .store import KuliahStore, StorageError

logger = logging.getLogger("kuliahbot.interpreter")

JADWAL_USAGE = "Format: /jadwal [hari]\nHari: " + ", ".join(WEEKDAYS)
TUGAS_USAGE = "Format: /tugas | /tugas add <judul>,<matkul>,<deadline>,<id> | /tugas remove <id>"
TUGAS_ADD_USAGE = (
    "Format: /tugas add <judul>,<matkul>,<deadline>,<id>\n"
    "Contoh: /tugas add Laporan Praktikum,Fisika Dasar,Jumat 23:59,T1"
)
TUGAS_REMOVE_USAGE = "Format: /tugas remove <id>"
HELP_TEXT = (
    "📖 Perintah KuliahBot:\n"
    "/jadwal - jadwal kuliah hari ini\n"
    "/jadwal <hari> - jadwal kuliah hari tertentu\n"
    "/tugas - daftar tugas\n"
    "/tugas add <judul>,<matkul>,<deadline>,<id> - tambah tugas\n"
    "/tugas remove <id> - hapus tugas"
)
UNKNOWN_COMMAND = "Perintah tidak dikenal. Ketik /bantuan untuk daftar perintah."
STORAGE_FAILURE = "⚠️ Gagal mengakses data kuliah, coba lagi nanti."

ASSIGNMENT_FIELDS = 4


class MalformedCommandError(Exception):
    """Raised when a command has the wrong number or shape of arguments."""

    def __init__(self, usage: str):
        super().__init__(usage)
        self.usage = usage


def parse_assignment_fields(raw: str) -> tuple[str, str, str, str]:
    """
    Split "judul,matkul,deadline,id" into exactly four stripped fields.

    Raises:
        MalformedCommandError: On a wrong field count or an empty field
    """
    fields = [part.strip() for part in raw.split(",")]
    if len(fields) != ASSIGNMENT_FIELDS or not all(fields):
        raise MalformedCommandError(TUGAS_ADD_USAGE)
    title, course, due, assignment_id = fields
    return title, course, due, assignment_id


class CommandInterpreter:
    """Turns command text into replies, reading and writing the store."""

    def __init__(
        self,
        store: KuliahStore,
        tz: Union[str, pytz.BaseTzInfo] = "Asia/Jakarta",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the interpreter.

        Args:
            store: Course store
            tz: Timezone used to resolve "today"
            clock: Returns the current aware datetime (tests inject a fixed one)
        """
        self.store = store
        self.tz = pytz.timezone(tz) if isinstance(tz, str) else tz
        self._clock = clock or (lambda: datetime.now(self.tz))

    async def handle(self, text: Optional[str], chat_id: Optional[int] = None) -> Optional[str]:
        """
        Interpret one inbound message.

        Returns:
            Reply text, or None if the text is not a command
        """
        text = (text or "").strip()
        if not text.startswith("/"):
            return None

        parts = text.split(maxsplit=1)
        command = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""

        track(
            "command_used",
            "command",
            chat_id=chat_id,
            properties={"command_name": command.lstrip("/")},
        )

        if command == "/jadwal":
            return await self.safe_reply(self.schedule_for(rest or None), chat_id)
        if command == "/tugas":
            return await self.safe_reply(self._tugas(rest), chat_id)
        if command in ("/bantuan", "/help"):
            return HELP_TEXT

        logger.info(f"Unknown command {command!r} from chat {chat_id}")
        return UNKNOWN_COMMAND

    async def safe_reply(self, pending: Awaitable[str], chat_id: Optional[int] = None) -> str:
        """Await a command and map its failures to user-facing replies."""
        try:
            return await pending
        except MalformedCommandError as e:
            return e.usage
        except StorageError as e:
            logger.error(f"Storage failure handling command from chat {chat_id}: {e}", exc_info=True)
            track(
                "storage_error",
                "error",
                chat_id=chat_id,
                properties={"error_message": str(e)[:200]},
            )
            return STORAGE_FAILURE

    async def _tugas(self, rest: str) -> str:
        subparts = rest.split(maxsplit=1)
        subcommand = subparts[0].lower() if subparts else ""
        argument = subparts[1].strip() if len(subparts) > 1 else ""

        if subcommand in ("", "list"):
            return await self.list_assignments()
        if subcommand == "add":
            title, course, due, assignment_id = parse_assignment_fields(argument)
            return await self.add_assignment(title, course, due, assignment_id)
        if subcommand == "remove":
            return await self.remove_assignment(argument)
        raise MalformedCommandError(TUGAS_USAGE)

    # =========================================================================
    # Operations (shared with the slash-command cog)
    # =========================================================================

    async def schedule_for(self, day: Optional[str] = None) -> str:
        """Numbered class list for a day (default: today)."""
        if day is None:
            day = weekday_name(self._clock())
        else:
            day = day.strip().lower()
            if day not in WEEKDAYS:
                raise MalformedCommandError(JADWAL_USAGE)

        data = await self.store.read()
        slots = data.slots_for(day)
        if not slots:
            return f"Tidak ada jadwal hari {day}"

        lines = [f"📅 Jadwal {day}:"]
        for index, slot in enumerate(slots, start=1):
            lines.append(f"{index}. {slot.course} ({slot.time}) - {slot.note}")
        return "\n".join(lines)

    async def list_assignments(self) -> str:
        data = await self.store.read()
        if not data.tugas:
            return "📌 Tidak ada tugas"

        lines = ["📌 Daftar Tugas:"]
        for assignment in data.tugas:
            lines.append(
                f"ID:{assignment.id} - {assignment.title} "
                f"({assignment.course}) [{assignment.due}]"
            )
        return "\n".join(lines)

    async def add_assignment(self, title: str, course: str, due: str, assignment_id: str) -> str:
        fields = [value.strip() for value in (title, course, due, assignment_id)]
        if not all(fields):
            raise MalformedCommandError(TUGAS_ADD_USAGE)
        title, course, due, assignment_id = fields

        async with self.store.update() as data:
            data.add_assignment(
                Assignment(id=assignment_id, title=title, course=course, due=due)
            )

        logger.info(f"Added assignment {assignment_id!r}: {title}")
        return f"✅ Tugas ditambahkan: {title}"

    async def remove_assignment(self, assignment_id: str) -> str:
        assignment_id = assignment_id.strip()
        if not assignment_id:
            raise MalformedCommandError(TUGAS_REMOVE_USAGE)

        async with self.store.update() as data:
            removed = data.remove_assignment(assignment_id)

        logger.info(f"Removed {removed} assignment(s) with id {assignment_id!r}")
        return f"🗑️ Tugas {assignment_id} dihapus"
