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

"""Tests for the course store and data model."""

import asyncio
import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kuliah.models import Assignment, ClassSlot, KuliahData, parse_clock
from kuliah.store import KuliahStore, StorageError


SAMPLE = {
    "jadwal": {
        "senin": [
            {"matkul": "Algoritma", "jam": "09:00", "info": "R. 301"},
            {"matkul": "Basis Data", "jam": "13:00", "info": "Lab 2", "dosen": "Bu Rina"},
        ],
        "rabu": [{"matkul": "Fisika", "jam": "07:30", "info": ""}],
    },
    "tugas": [{"id": "T1", "judul": "Laporan", "matkul": "Fisika", "jam": "Jumat 23:59"}],
    "semester": "ganjil",
}


def write_sample(store: KuliahStore, payload=SAMPLE) -> None:
    store.path.write_text(json.dumps(payload), encoding="utf-8")


class TestLoad:
    """Test first access and decoding."""

    def test_creates_empty_document(self, store):
        assert not store.path.exists()
        data = store.load()
        assert data.jadwal == {}
        assert data.tugas == []
        assert json.loads(store.path.read_text(encoding="utf-8")) == {"jadwal": {}, "tugas": []}

    def test_reads_sample(self, store):
        write_sample(store)
        data = store.load()
        assert [s.course for s in data.slots_for("senin")] == ["Algoritma", "Basis Data"]
        assert data.tugas[0] == Assignment(id="T1", title="Laporan", course="Fisika", due="Jumat 23:59")

    def test_day_keys_normalized(self, store):
        write_sample(store, {"jadwal": {"Senin ": [{"matkul": "A", "jam": "08:00", "info": ""}]}, "tugas": []})
        assert store.load().slots_for("senin")[0].course == "A"

    def test_invalid_json(self, store):
        store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            store.load()

    def test_wrong_shape(self, store):
        write_sample(store, {"jadwal": [], "tugas": []})
        with pytest.raises(StorageError):
            store.load()
        write_sample(store, {"jadwal": {}, "tugas": "nope"})
        with pytest.raises(StorageError):
            store.load()

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        store = KuliahStore(blocker / "kuliah.json")
        with pytest.raises(StorageError):
            store.load()


class TestSave:
    """Test persistence and round-tripping."""

    def test_round_trip_is_stable(self, store):
        write_sample(store)
        first = store.load()
        store.save(first)
        second = store.load()
        assert second == first
        store.save(second)
        assert store.load() == first

    def test_unknown_keys_preserved(self, store):
        write_sample(store)
        store.save(store.load())
        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw["semester"] == "ganjil"
        assert raw["jadwal"]["senin"][1]["dosen"] == "Bu Rina"

    def test_save_overwrites_in_full(self, store):
        write_sample(store)
        store.save(KuliahData())
        assert store.load() == KuliahData()

    def test_no_temp_files_left(self, store):
        store.save(KuliahData(tugas=[Assignment("T9", "Kuis", "Kalkulus", "Senin")]))
        leftovers = [p.name for p in store.path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_non_ascii_written_verbatim(self, store):
        store.save(KuliahData(tugas=[Assignment("T1", "Résumé", "Bahasa", "Senin")]))
        assert "Résumé" in store.path.read_text(encoding="utf-8")


class TestModel:
    """Test data model helpers."""

    def test_parse_clock(self):
        assert parse_clock("09:00") == (9, 0)
        assert parse_clock("7:05") == (7, 5)
        assert parse_clock("13.30") == (13, 30)
        assert parse_clock("24:00") is None
        assert parse_clock("09:60") is None
        assert parse_clock("pagi") is None
        assert parse_clock("") is None

    def test_remove_assignment_removes_all_matches(self):
        data = KuliahData(tugas=[
            Assignment("T1", "a", "x", "d"),
            Assignment("T2", "b", "y", "d"),
            Assignment("T1", "c", "z", "d"),
        ])
        assert data.remove_assignment("T1") == 2
        assert [t.id for t in data.tugas] == ["T2"]
        assert data.remove_assignment("missing") == 0

    def test_remove_slot(self):
        data = KuliahData()
        data.add_slot("senin", ClassSlot("A", "08:00"))
        assert data.remove_slot("senin", 5) is None
        assert data.remove_slot("senin", 0).course == "A"
        assert "senin" not in data.jadwal


class TestConcurrency:
    """Test the load-modify-save critical section."""

    @pytest.mark.asyncio
    async def test_parallel_updates_do_not_lose_writes(self, store):
        async def add(i):
            async with store.update() as data:
                data.add_assignment(Assignment(f"T{i}", f"Tugas {i}", "MK", "besok"))

        await asyncio.gather(*(add(i) for i in range(15)), *(store.read() for _ in range(5)))

        ids = {t.id for t in store.load().tugas}
        assert ids == {f"T{i}" for i in range(15)}

    @pytest.mark.asyncio
    async def test_failed_update_writes_nothing(self, store):
        write_sample(store)
        with pytest.raises(RuntimeError):
            async with store.update() as data:
                data.tugas.clear()
                raise RuntimeError("boom")
        assert len(store.load().tugas) == 1

    @pytest.mark.asyncio
    async def test_read_timeout_is_storage_error(self, store, monkeypatch):
        import time

        store.timeout = 0.05

        def slow_load():
            time.sleep(0.3)
            return KuliahData()

        monkeypatch.setattr(store, "load", slow_load)
        with pytest.raises(StorageError):
            await store.read()
