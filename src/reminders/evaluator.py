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
Reminder Evaluation

Pure functions that decide which reminders are due at a given minute.

Two kinds:
- daily digest: a fixed message on a cron schedule (05:00 by default)
- class alert: "N menit lagi <matkul>" N minutes before each of today's classes

Both are minute-granular: a reminder is due only when the current local
hour:minute equals its fire minute. Missed minutes are never caught up.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from croniter import croniter

from kuliah.models import KuliahData, parse_clock, weekday_name

logger = logging.getLogger("kuliahbot.reminders.evaluator")

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class DueReminder:
    """A reminder whose window is the current minute."""

    key: str
    kind: str  # "digest" or "class_alert"
    text: str
    minute: datetime


def minute_of(moment: datetime) -> datetime:
    """Truncate to the start of the minute."""
    return moment.replace(second=0, microsecond=0)


def digest_due(now: datetime, cron_expr: str, message: str) -> Optional[DueReminder]:
    """Return the daily digest if `now` falls in a minute matched by the cron expression."""
    minute = minute_of(now)
    if not croniter.match(cron_expr, minute):
        return None
    return DueReminder(
        key=f"digest|{minute:%Y-%m-%dT%H:%M}",
        kind="digest",
        text=message,
        minute=minute,
    )


def alert_minute(slot_time: str, lead_minutes: int) -> Optional[int]:
    """
    Minute-of-day at which to alert for a class, or None.

    None means the time is unparsable, or the alert would fall on the
    previous day (a class before 00:05 with a 5 minute lead).
    """
    clock = parse_clock(slot_time)
    if clock is None:
        return None
    hour, minute = clock
    fire_at = hour * 60 + minute - lead_minutes
    if fire_at < 0 or fire_at >= MINUTES_PER_DAY:
        return None
    return fire_at


def class_alerts_due(now: datetime, data: KuliahData, lead_minutes: int = 5) -> list[DueReminder]:
    """Return alerts for today's classes whose alert minute is the current minute."""
    minute = minute_of(now)
    current = minute.hour * 60 + minute.minute
    day = weekday_name(minute)

    due = []
    for slot in data.slots_for(day):
        fire_at = alert_minute(slot.time, lead_minutes)
        if fire_at is None:
            if parse_clock(slot.time) is None:
                logger.warning(f"Skipping class {slot.course!r} on {day}: bad time {slot.time!r}")
            continue
        if fire_at != current:
            continue
        due.append(
            DueReminder(
                key=f"class_alert|{minute:%Y-%m-%dT%H:%M}|{slot.course}|{slot.time}",
                kind="class_alert",
                text=f"⚠️ {lead_minutes} menit lagi {slot.course} ({slot.time})",
                minute=minute,
            )
        )
    return due
