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

"""Shared fixtures for KuliahBot tests."""

import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
import pytz

# Analytics must be off before any module imports it
os.environ["ANALYTICS_ENABLED"] = "false"

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from delivery.sink import DeliveryError, NotificationSink
from kuliah.config import BotConfig
from kuliah.store import KuliahStore

JAKARTA = pytz.timezone("Asia/Jakarta")


def wib(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """Aware datetime in Asia/Jakarta. 2026-10-19 is a Monday (senin)."""
    return JAKARTA.localize(datetime(year, month, day, hour, minute, second))


class FakeSink(NotificationSink):
    """Records sends; chats in `failing` raise DeliveryError."""

    def __init__(self, chats=(1, 2, 3), failing=()):
        super().__init__(send_timeout=1.0)
        self.chats = list(chats)
        self.failing = set(failing)
        self.sent: list[tuple[int, str]] = []

    def known_chats(self) -> list[int]:
        return list(self.chats)

    async def _deliver(self, chat_id: int, text: str) -> None:
        if chat_id in self.failing:
            raise DeliveryError(chat_id, "recipient unavailable")
        self.sent.append((chat_id, text))

    def texts(self) -> list[str]:
        return [text for _, text in self.sent]


@pytest.fixture
def store(tmp_path) -> KuliahStore:
    return KuliahStore(tmp_path / "kuliah.json", timeout=5.0)


@pytest.fixture
def config(tmp_path) -> BotConfig:
    return BotConfig(
        data_path=str(tmp_path / "kuliah.json"),
        state_path=str(tmp_path / "kuliah_state.json"),
        timezone="Asia/Jakarta",
    )


@pytest.fixture
def fake_sink() -> FakeSink:
    return FakeSink()
