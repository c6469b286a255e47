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
KuliahBot Configuration

Runtime settings for the store, reminder scheduler and delivery layer.
Values can be overridden via environment variables (a .env file is loaded
by the bot entry point).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import pytz
from croniter import croniter

logger = logging.getLogger("kuliahbot.config")

DEFAULT_TIMEZONE = "Asia/Jakarta"  # WIB
DEFAULT_DIGEST_CRON = "0 5 * * *"
DIGEST_MESSAGE = "⏰ Selamat pagi! Jangan lupa kuliah hari ini."

# A tick slower than once a minute could skip a whole minute window
MAX_TICK_SECONDS = 60


def _parse_channel_ids(raw: Optional[str]) -> tuple[int, ...]:
    """Parse a comma-separated list of channel IDs, ignoring junk entries."""
    ids = []
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            logger.warning(f"Ignoring invalid channel id in KULIAH_BROADCAST_CHANNELS: {part!r}")
    return tuple(ids)


@dataclass
class BotConfig:
    """Configuration for the course assistant."""

    # Storage
    data_path: str = "kuliah.json"
    state_path: str = "kuliah_state.json"
    store_timeout_seconds: float = 5.0

    # Reminders
    timezone: str = DEFAULT_TIMEZONE
    digest_cron: str = DEFAULT_DIGEST_CRON
    digest_message: str = DIGEST_MESSAGE
    alert_lead_minutes: int = 5
    tick_seconds: int = 30

    # Delivery
    send_timeout_seconds: float = 10.0
    broadcast_channel_ids: tuple[int, ...] = field(default_factory=tuple)
    stickers_enabled: bool = True

    # Reconnect backoff
    reconnect_base_seconds: float = 2.0
    reconnect_max_seconds: float = 300.0

    def __post_init__(self):
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Invalid timezone '{self.timezone}', falling back to {DEFAULT_TIMEZONE}")
            self.timezone = DEFAULT_TIMEZONE

        if not croniter.is_valid(self.digest_cron):
            logger.warning(
                f"Invalid digest cron '{self.digest_cron}', falling back to '{DEFAULT_DIGEST_CRON}'"
            )
            self.digest_cron = DEFAULT_DIGEST_CRON

        self.tick_seconds = max(1, min(self.tick_seconds, MAX_TICK_SECONDS))
        self.alert_lead_minutes = max(0, self.alert_lead_minutes)

    @property
    def tz(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.timezone)

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Create config from environment variables with defaults."""
        return cls(
            data_path=os.getenv("KULIAH_DATA_PATH", "kuliah.json"),
            state_path=os.getenv("KULIAH_STATE_PATH", "kuliah_state.json"),
            store_timeout_seconds=float(os.getenv("KULIAH_STORE_TIMEOUT_SECONDS", "5")),
            timezone=os.getenv("KULIAH_TIMEZONE", DEFAULT_TIMEZONE),
            digest_cron=os.getenv("KULIAH_DIGEST_CRON", DEFAULT_DIGEST_CRON),
            alert_lead_minutes=int(os.getenv("KULIAH_ALERT_LEAD_MINUTES", "5")),
            tick_seconds=int(os.getenv("KULIAH_TICK_SECONDS", "30")),
            send_timeout_seconds=float(os.getenv("KULIAH_SEND_TIMEOUT_SECONDS", "10")),
            broadcast_channel_ids=_parse_channel_ids(os.getenv("KULIAH_BROADCAST_CHANNELS")),
            stickers_enabled=os.getenv("KULIAH_STICKERS_ENABLED", "true").lower() == "true",
            reconnect_base_seconds=float(os.getenv("KULIAH_RECONNECT_BASE_SECONDS", "2")),
            reconnect_max_seconds=float(os.getenv("KULIAH_RECONNECT_MAX_SECONDS", "300")),
        )
