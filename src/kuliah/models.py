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
Course Data Model

Weekly timetable (jadwal) and assignment list (tugas) as stored in kuliah.json.
Field names on disk follow the original document format:

    {
        "jadwal": {"senin": [{"matkul": ..., "jam": "08:00", "info": ...}]},
        "tugas": [{"id": ..., "judul": ..., "matkul": ..., "jam": ...}]
    }

Keys the bot does not know about are kept so hand edits survive a save.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# Monday..Sunday, matching datetime.weekday()
WEEKDAYS = ("senin", "selasa", "rabu", "kamis", "jumat", "sabtu", "minggu")

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2})[:.](\d{2})\s*$")


def weekday_name(moment: datetime) -> str:
    """Return the lowercase Indonesian day name for a datetime."""
    return WEEKDAYS[moment.weekday()]


def parse_clock(value: str) -> Optional[tuple[int, int]]:
    """
    Parse a 24-hour "HH:MM" (or "HH.MM") string.

    Returns:
        (hour, minute) tuple, or None if the value is not a valid clock time
    """
    match = _CLOCK_PATTERN.match(value or "")
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


@dataclass
class ClassSlot:
    """One class meeting in the weekly timetable."""

    course: str
    time: str
    note: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "ClassSlot":
        raw = dict(raw)
        return cls(
            course=str(raw.pop("matkul", "")),
            time=str(raw.pop("jam", "")),
            note=str(raw.pop("info", "")),
            extra=raw,
        )

    def to_dict(self) -> dict:
        return {"matkul": self.course, "jam": self.time, "info": self.note, **self.extra}


@dataclass
class Assignment:
    """An assignment. The due string is display-only and never parsed."""

    id: str
    title: str
    course: str
    due: str
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "Assignment":
        raw = dict(raw)
        return cls(
            id=str(raw.pop("id", "")),
            title=str(raw.pop("judul", "")),
            course=str(raw.pop("matkul", "")),
            due=str(raw.pop("jam", "")),
            extra=raw,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "judul": self.title,
            "matkul": self.course,
            "jam": self.due,
            **self.extra,
        }


@dataclass
class KuliahData:
    """The whole persisted document."""

    jadwal: dict[str, list[ClassSlot]] = field(default_factory=dict)
    tugas: list[Assignment] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "KuliahData":
        """
        Build from a decoded JSON document.

        Raises:
            ValueError: If the document does not have the expected shape
        """
        if not isinstance(raw, dict):
            raise ValueError("document root must be an object")
        raw = dict(raw)

        jadwal_raw = raw.pop("jadwal", {})
        tugas_raw = raw.pop("tugas", [])
        if not isinstance(jadwal_raw, dict):
            raise ValueError("'jadwal' must be an object mapping day -> list")
        if not isinstance(tugas_raw, list):
            raise ValueError("'tugas' must be a list")

        jadwal: dict[str, list[ClassSlot]] = {}
        for day, slots in jadwal_raw.items():
            if not isinstance(slots, list) or not all(isinstance(s, dict) for s in slots):
                raise ValueError(f"'jadwal.{day}' must be a list of objects")
            # Hand-edited files sometimes capitalise day names
            jadwal.setdefault(str(day).strip().lower(), []).extend(
                ClassSlot.from_dict(s) for s in slots
            )

        if not all(isinstance(t, dict) for t in tugas_raw):
            raise ValueError("'tugas' must contain only objects")

        return cls(
            jadwal=jadwal,
            tugas=[Assignment.from_dict(t) for t in tugas_raw],
            extra=raw,
        )

    def to_dict(self) -> dict:
        return {
            "jadwal": {
                day: [slot.to_dict() for slot in slots]
                for day, slots in self.jadwal.items()
            },
            "tugas": [assignment.to_dict() for assignment in self.tugas],
            **self.extra,
        }

    def slots_for(self, day: str) -> list[ClassSlot]:
        return self.jadwal.get(day, [])

    def add_slot(self, day: str, slot: ClassSlot) -> None:
        self.jadwal.setdefault(day, []).append(slot)

    def remove_slot(self, day: str, index: int) -> Optional[ClassSlot]:
        """Remove the slot at a zero-based index; None if out of range."""
        slots = self.jadwal.get(day, [])
        if index < 0 or index >= len(slots):
            return None
        removed = slots.pop(index)
        if not slots:
            del self.jadwal[day]
        return removed

    def add_assignment(self, assignment: Assignment) -> None:
        self.tugas.append(assignment)

    def remove_assignment(self, assignment_id: str) -> int:
        """Remove every assignment with the given id. Returns how many went."""
        before = len(self.tugas)
        self.tugas = [t for t in self.tugas if t.id != assignment_id]
        return before - len(self.tugas)
