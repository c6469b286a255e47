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

"""Tests for the command interpreter."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from conftest import JAKARTA, wib
from kuliah.interpreter import (
    HELP_TEXT,
    STORAGE_FAILURE,
    TUGAS_ADD_USAGE,
    TUGAS_REMOVE_USAGE,
    UNKNOWN_COMMAND,
    CommandInterpreter,
    MalformedCommandError,
    parse_assignment_fields,
)
from kuliah.models import WEEKDAYS, ClassSlot, KuliahData

MONDAY = wib(2026, 10, 19, 7, 0)


def make_interpreter(store, now=MONDAY) -> CommandInterpreter:
    return CommandInterpreter(store, JAKARTA, clock=lambda: now)


@pytest.fixture
def monday_store(store):
    data = KuliahData()
    data.add_slot("senin", ClassSlot("Algoritma", "09:00", "R. 301"))
    data.add_slot("senin", ClassSlot("Basis Data", "13:00", "Lab 2"))
    store.save(data)
    return store


class TestParsing:
    """Test /tugas add argument tokenization."""

    def test_four_fields(self):
        assert parse_assignment_fields("Laporan Praktikum, Fisika ,Jumat 23:59,T1") == (
            "Laporan Praktikum",
            "Fisika",
            "Jumat 23:59",
            "T1",
        )

    @pytest.mark.parametrize(
        "raw",
        ["", "a,b,c", "a,b,c,d,e", "a,,c,d", "a,b,c, "],
    )
    def test_rejects_wrong_shape(self, raw):
        with pytest.raises(MalformedCommandError):
            parse_assignment_fields(raw)


class TestJadwal:
    """Test /jadwal."""

    @pytest.mark.asyncio
    async def test_lists_today(self, monday_store):
        reply = await make_interpreter(monday_store).handle("/jadwal", chat_id=1)
        assert reply == (
            "📅 Jadwal senin:\n"
            "1. Algoritma (09:00) - R. 301\n"
            "2. Basis Data (13:00) - Lab 2"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", range(7))
    async def test_empty_day_names_the_day(self, store, offset):
        now = wib(2026, 10, 19 + offset, 10, 0)
        reply = await make_interpreter(store, now).handle("/jadwal")
        assert reply == f"Tidak ada jadwal hari {WEEKDAYS[offset]}"

    @pytest.mark.asyncio
    async def test_named_day(self, monday_store):
        interpreter = make_interpreter(monday_store, wib(2026, 10, 21, 10, 0))
        assert (await interpreter.handle("/jadwal Senin")).startswith("📅 Jadwal senin:")

    @pytest.mark.asyncio
    async def test_unknown_day_gives_usage(self, store):
        reply = await make_interpreter(store).handle("/jadwal someday")
        assert reply.startswith("Format: /jadwal")

    @pytest.mark.asyncio
    async def test_command_is_case_insensitive(self, monday_store):
        reply = await make_interpreter(monday_store).handle("  /JADWAL  ")
        assert reply.startswith("📅 Jadwal senin:")


class TestTugas:
    """Test /tugas list, add, remove."""

    @pytest.mark.asyncio
    async def test_empty_list(self, store):
        assert await make_interpreter(store).handle("/tugas") == "📌 Tidak ada tugas"

    @pytest.mark.asyncio
    async def test_add_then_list(self, store):
        interpreter = make_interpreter(store)
        reply = await interpreter.handle("/tugas add Laporan Praktikum,Fisika Dasar,Jumat 23:59,T1")
        assert reply == "✅ Tugas ditambahkan: Laporan Praktikum"

        listing = await interpreter.handle("/tugas")
        assert listing == "📌 Daftar Tugas:\nID:T1 - Laporan Praktikum (Fisika Dasar) [Jumat 23:59]"

        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw["tugas"] == [
            {"id": "T1", "judul": "Laporan Praktikum", "matkul": "Fisika Dasar", "jam": "Jumat 23:59"}
        ]

    @pytest.mark.asyncio
    async def test_list_subcommand(self, store):
        interpreter = make_interpreter(store)
        await interpreter.handle("/tugas add A,B,C,X")
        assert "ID:X - A (B) [C]" in await interpreter.handle("/tugas list")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text",
        ["/tugas add", "/tugas add A,B,C", "/tugas add A,B,C,D,E", "/tugas add A,,C,D"],
    )
    async def test_malformed_add_does_not_mutate(self, store, text):
        interpreter = make_interpreter(store)
        await interpreter.handle("/tugas add Existing,MK,Senin,E1")
        before = store.path.read_text(encoding="utf-8")

        assert await interpreter.handle(text) == TUGAS_ADD_USAGE
        assert store.path.read_text(encoding="utf-8") == before

    @pytest.mark.asyncio
    async def test_remove(self, store):
        interpreter = make_interpreter(store)
        await interpreter.handle("/tugas add A,B,C,T1")
        await interpreter.handle("/tugas add D,E,F,T2")
        await interpreter.handle("/tugas add G,H,I,T1")

        assert await interpreter.handle("/tugas remove T1") == "🗑️ Tugas T1 dihapus"
        listing = await interpreter.handle("/tugas")
        assert "ID:T1" not in listing
        assert "ID:T2" in listing

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, store):
        interpreter = make_interpreter(store)
        await interpreter.handle("/tugas add A,B,C,T1")
        before = store.load()

        assert await interpreter.handle("/tugas remove nope") == "🗑️ Tugas nope dihapus"
        assert store.load() == before

    @pytest.mark.asyncio
    async def test_remove_without_id(self, store):
        assert await make_interpreter(store).handle("/tugas remove") == TUGAS_REMOVE_USAGE

    @pytest.mark.asyncio
    async def test_unknown_subcommand(self, store):
        reply = await make_interpreter(store).handle("/tugas edit T1")
        assert reply.startswith("Format: /tugas")


class TestRouting:
    """Test dispatch, help, and failure replies."""

    @pytest.mark.asyncio
    async def test_non_command_is_ignored(self, store):
        interpreter = make_interpreter(store)
        assert await interpreter.handle("halo") is None
        assert await interpreter.handle("ping") is None
        assert await interpreter.handle(None) is None
        assert await interpreter.handle("") is None

    @pytest.mark.asyncio
    async def test_unknown_command_gets_hint(self, store):
        assert await make_interpreter(store).handle("/foo bar") == UNKNOWN_COMMAND

    @pytest.mark.asyncio
    async def test_help(self, store):
        assert await make_interpreter(store).handle("/bantuan") == HELP_TEXT

    @pytest.mark.asyncio
    async def test_storage_error_reply(self, store):
        store.path.write_text("{broken", encoding="utf-8")
        interpreter = make_interpreter(store)
        assert await interpreter.handle("/jadwal") == STORAGE_FAILURE
        assert await interpreter.handle("/tugas add A,B,C,D") == STORAGE_FAILURE
        # The broken file is left for a human to fix
        assert store.path.read_text(encoding="utf-8") == "{broken"
