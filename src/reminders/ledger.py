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
Fired Reminder Ledger

Remembers which reminder windows have already been broadcast so a window is
never delivered twice: not on two ticks inside the same minute, not after a
reconnect, and not after a process restart.

Keys look like "class_alert|2026-10-19T08:55|Algoritma|09:00" and map to the
ISO minute they fired for. Keys from earlier days are pruned on every claim.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from kuliah.store import write_json_atomic

logger = logging.getLogger("kuliahbot.reminders.ledger")


class FiredLedger:
    """In-memory record of fired reminder keys, mirrored to a JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize the ledger.

        Args:
            path: JSON file to persist to (None = memory only)
        """
        self.path = Path(path) if path else None
        self._fired: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as handle:
                raw = json.load(handle)
            fired = raw.get("fired", {}) if isinstance(raw, dict) else {}
            self._fired = {str(k): str(v) for k, v in fired.items()}
            logger.info(f"Loaded {len(self._fired)} fired reminder key(s) from {self.path}")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable reminder ledger {self.path}: {e}")
            self._fired = {}

    def __contains__(self, key: str) -> bool:
        return key in self._fired

    def __len__(self) -> int:
        return len(self._fired)

    def claim(self, key: str, minute: datetime) -> bool:
        """
        Record a reminder window as fired.

        Returns:
            True if the key was new (caller should deliver), False if this
            window already fired
        """
        if key in self._fired:
            return False
        self.prune(minute.date())
        self._fired[key] = minute.isoformat()
        return True

    def prune(self, today: date) -> int:
        """Drop keys that fired before `today`. Returns how many were dropped."""
        stale = []
        for key, fired_at in self._fired.items():
            try:
                if datetime.fromisoformat(fired_at).date() < today:
                    stale.append(key)
            except ValueError:
                stale.append(key)
        for key in stale:
            del self._fired[key]
        return len(stale)

    def persist(self) -> None:
        """
        Write the ledger to disk.

        Raises:
            OSError: If the file cannot be written
        """
        if self.path is None:
            return
        write_json_atomic(self.path, {"fired": dict(self._fired)})
