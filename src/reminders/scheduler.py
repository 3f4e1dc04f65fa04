# groupremind - Discord Reminder Bot
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

In-memory one-shot timers for pending reminders. A discord.ext.tasks loop
polls the registry and hands every due job to a single dispatcher
coroutine. Timers do not survive a restart; the store is the durable
record and the engine re-registers timers from it on startup.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from discord.ext import tasks

logger = logging.getLogger("groupremind.reminders.scheduler")


@dataclass(frozen=True)
class ScheduledJob:
    """What a timer delivers when it fires."""

    reminder_id: str
    fire_at: datetime
    chat_id: str
    message: str


Dispatcher = Callable[[ScheduledJob], Awaitable[None]]


class ReminderScheduler:
    """
    Registry of live one-shot timers keyed by reminder ID.

    The loop re-reads the wall clock every poll_seconds, so a job fires
    at or after its fire time. A job leaves the registry before it is
    dispatched, so every registration fires at most once. Scheduling an
    ID that is already registered replaces the earlier timer.
    """

    def __init__(
        self,
        now: Callable[[], datetime] = datetime.now,
        poll_seconds: float = 60.0,
    ):
        """
        Initialize the scheduler.

        Args:
            now: Wall clock returning naive local time
            poll_seconds: How often the loop checks for due jobs
        """
        self._now = now
        self.poll_seconds = poll_seconds
        self._dispatch: Optional[Dispatcher] = None
        self._timers: dict[str, ScheduledJob] = {}
        self._started = False
        self._check_timers.change_interval(seconds=poll_seconds)

    def set_dispatcher(self, dispatch: Dispatcher) -> None:
        """Set the coroutine that receives every fired job."""
        self._dispatch = dispatch

    def start(self) -> None:
        """Start the polling loop."""
        if not self._started:
            self._check_timers.start()
            self._started = True
            logger.info(f"Reminder scheduler started (polling every {self.poll_seconds}s)")

    def stop(self) -> None:
        """Stop the polling loop. Registered timers are kept."""
        if self._started:
            self._check_timers.cancel()
            self._started = False
            logger.info("Reminder scheduler stopped")

    def schedule(self, job: ScheduledJob) -> None:
        """Register a timer for job.fire_at."""
        if self._dispatch is None:
            raise RuntimeError("ReminderScheduler has no dispatcher")

        if job.reminder_id in self._timers:
            logger.info(f"Replacing timer for {job.reminder_id}")
        self._timers[job.reminder_id] = job
        logger.info(f"Scheduled {job.reminder_id} for {job.fire_at.isoformat()}")

    def cancel(self, reminder_id: str) -> bool:
        """
        Drop a live timer.

        Returns:
            True if a timer was cancelled, False if none was registered
        """
        if self._timers.pop(reminder_id, None) is None:
            return False
        logger.info(f"Cancelled timer for {reminder_id}")
        return True

    def shutdown(self) -> None:
        """Stop the loop and drop every live timer."""
        self.stop()
        count = len(self._timers)
        self._timers.clear()
        if count:
            logger.info(f"Scheduler shut down, dropped {count} timer(s)")

    @property
    def jobs(self) -> list[ScheduledJob]:
        """Live jobs ordered by fire time."""
        return sorted(self._timers.values(), key=lambda j: j.fire_at)

    def __contains__(self, reminder_id: str) -> bool:
        return reminder_id in self._timers

    def __len__(self) -> int:
        return len(self._timers)

    async def dispatch_due(self) -> int:
        """
        Dispatch every job whose fire time has been reached.

        Returns:
            Number of jobs dispatched
        """
        now = self._now()
        due = [job for job in self.jobs if job.fire_at <= now]

        dispatched = 0
        for job in due:
            # Skip jobs cancelled or replaced while an earlier dispatch ran
            if self._timers.get(job.reminder_id) is not job:
                continue
            del self._timers[job.reminder_id]
            dispatched += 1

            logger.info(f"Timer fired for {job.reminder_id}")
            try:
                await self._dispatch(job)
            except Exception as e:
                logger.error(f"Dispatch failed for {job.reminder_id}: {e}", exc_info=True)
        return dispatched

    @tasks.loop(seconds=60)
    async def _check_timers(self) -> None:
        """Check for due timers and dispatch them."""
        try:
            await self.dispatch_due()
        except Exception as e:
            logger.error(f"Error in reminder scheduler loop: {e}", exc_info=True)
