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
Reminder Scheduler Module

Background task loop that evaluates due reminders and broadcasts them.
Uses discord.ext.tasks for reliable scheduling.

The loop ticks at most every 60 seconds (30 by default) so every minute is
looked at at least once. Ticks landing in the same minute are collapsed by
the fired-reminder ledger, which also survives reconnects and restarts.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from discord.ext import tasks

from analytics import track
from delivery.sink import NotificationSink
from kuliah.config import BotConfig
from kuliah.store import KuliahStore, StorageError

from .evaluator import DueReminder, class_alerts_due, digest_due
from .ledger import FiredLedger

logger = logging.getLogger("kuliahbot.reminders.scheduler")


class ReminderScheduler:
    """
    Background scheduler for the daily digest and upcoming-class alerts.

    Owned by the process root rather than the chat connection, so the fired
    ledger carries over from one connection epoch to the next. Ticks are
    skipped while the connection is not open.
    """

    def __init__(
        self,
        store: KuliahStore,
        sink: NotificationSink,
        config: BotConfig,
        ledger: Optional[FiredLedger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the reminder scheduler.

        Args:
            store: Course store (read on every tick)
            sink: Where broadcasts go
            config: Bot configuration
            ledger: Fired reminder ledger (defaults to config.state_path)
            clock: Returns the current aware datetime
        """
        self.store = store
        self.sink = sink
        self.config = config
        self.ledger = ledger if ledger is not None else FiredLedger(config.state_path)
        self._clock = clock or (lambda: datetime.now(config.tz))
        self._started = False
        self._active = False
        self._tick_loop.change_interval(seconds=config.tick_seconds)

    def start(self) -> None:
        """Start the scheduler loop."""
        if not self._started:
            self._tick_loop.start()
            self._started = True
            logger.info(f"Reminder scheduler started (interval: {self.config.tick_seconds}s)")

    def stop(self) -> None:
        """Stop the scheduler loop."""
        if self._started:
            self._tick_loop.cancel()
            self._started = False
            logger.info("Reminder scheduler stopped")

    def set_active(self, active: bool) -> None:
        """Pause or resume ticking, e.g. when the chat connection drops."""
        if active != self._active:
            logger.info(f"Reminder scheduler {'resumed' if active else 'paused'}")
        self._active = active

    @property
    def active(self) -> bool:
        return self._active

    @tasks.loop(seconds=30)
    async def _tick_loop(self) -> None:
        """Evaluate reminders once, if the connection is open."""
        if not self._active:
            return
        try:
            await self.tick()
        except Exception as e:
            logger.error(f"Error in reminder scheduler loop: {e}", exc_info=True)
            track(
                "scheduler_error",
                "error",
                properties={
                    "error_type": type(e).__name__,
                    "error_message": str(e)[:200],
                },
            )

    @_tick_loop.before_loop
    async def _before_tick(self) -> None:
        logger.info("Reminder scheduler ready, starting loop")

    async def tick(self, now: Optional[datetime] = None) -> list[DueReminder]:
        """
        Evaluate and deliver every reminder due at `now`.

        Returns:
            The reminders broadcast by this tick (already-fired ones excluded)
        """
        now = now or self._clock()
        due: list[DueReminder] = []

        digest = digest_due(now, self.config.digest_cron, self.config.digest_message)
        if digest:
            due.append(digest)

        try:
            data = await self.store.read()
        except StorageError as e:
            # The digest does not need the store, so keep going without alerts
            logger.error(f"Reminder tick could not read the course store: {e}", exc_info=True)
            track("storage_error", "error", properties={"error_message": str(e)[:200]})
        else:
            due.extend(class_alerts_due(now, data, self.config.alert_lead_minutes))

        fired = []
        for reminder in due:
            if not self.ledger.claim(reminder.key, reminder.minute):
                logger.debug(f"Reminder {reminder.key} already fired, skipping")
                continue
            await self._persist_ledger()
            await self._deliver(reminder)
            fired.append(reminder)
        return fired

    async def _persist_ledger(self) -> None:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.ledger.persist),
                timeout=self.config.store_timeout_seconds,
            )
        except (OSError, asyncio.TimeoutError) as e:
            # In-memory ledger still dedupes for the life of this process
            logger.warning(f"Failed to persist reminder ledger: {e}")

    async def _deliver(self, reminder: DueReminder) -> None:
        report = await self.sink.broadcast(reminder.text)
        logger.info(
            f"Fired {reminder.kind} {reminder.key}: "
            f"{len(report.delivered)} delivered, {len(report.failed)} failed"
        )
        track(
            "reminder_fired",
            "reminder",
            properties={
                "kind": reminder.kind,
                "delivered": len(report.delivered),
                "failed": len(report.failed),
            },
        )
