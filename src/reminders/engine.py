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
Reminder Engine Module

Creates reminders, keeps the store and the scheduler in step, delivers
fired reminders, and rebuilds timers from disk on startup.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from .config import ReminderConfig
from .models import Reminder, ReminderRejected, make_reminder_id, to_local_naive
from .scheduler import ReminderScheduler, ScheduledJob
from .store import ReminderStore

logger = logging.getLogger("groupremind.reminders.engine")

REMINDER_TEMPLATE = "🔔 **REMINDER** 🔔\n\nTomorrow: {subject} 📅"

# Sends text to a chat; a False result means the message was not delivered
Sender = Callable[[str, str], Awaitable[Any]]


def render_message(subject: str) -> str:
    """Build the notification text sent when a reminder fires."""
    return REMINDER_TEMPLATE.format(subject=subject)


class ReminderEngine:
    """
    The only component that creates or destroys reminders.

    Each reminder is a stored record plus a live timer. Creating,
    firing, and reconciling run one at a time under the engine lock.
    """

    def __init__(
        self,
        store: ReminderStore,
        scheduler: ReminderScheduler,
        sender: Sender,
        config: Optional[ReminderConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the reminder engine.

        Args:
            store: Durable reminder storage
            scheduler: Timer registry; the engine becomes its dispatcher
            sender: Coroutine delivering (chat_id, text) to the chat
            config: Reminder configuration (defaults if omitted)
            clock: Wall clock returning naive local time
        """
        self.store = store
        self.scheduler = scheduler
        self.sender = sender
        self.config = config or ReminderConfig()
        self._clock = clock
        self._lock = asyncio.Lock()
        scheduler.set_dispatcher(self.on_fire)

    def compute_fire_time(self, event_at: datetime) -> datetime:
        """One calendar day before the event, at the configured hour sharp."""
        day_before = to_local_naive(event_at) - timedelta(days=1)
        return day_before.replace(
            hour=self.config.reminder_hour, minute=0, second=0, microsecond=0
        )

    async def create_reminder(self, chat_id: str, subject: str, event_at: datetime) -> Reminder:
        """
        Create, schedule, and persist a reminder for an event.

        Args:
            chat_id: Destination chat
            subject: What the event is about
            event_at: When the event happens

        Returns:
            The created reminder

        Raises:
            ReminderRejected: If the computed fire time is not in the future
        """
        event_at = to_local_naive(event_at)
        # Stored timestamps keep millisecond precision
        event_at = event_at.replace(microsecond=event_at.microsecond // 1000 * 1000)
        fire_at = self.compute_fire_time(event_at)

        if fire_at <= self._clock():
            logger.info(f"Rejected reminder for chat {chat_id}: fire time {fire_at} has passed")
            raise ReminderRejected("too_soon", fire_at)

        reminder = Reminder(
            id=make_reminder_id(chat_id, fire_at),
            chat_id=chat_id,
            message=render_message(subject),
            fire_at=fire_at,
            subject=subject,
            event_at=event_at,
        )

        async with self._lock:
            self.scheduler.schedule(self._job_for(reminder))
            try:
                await self.store.add(reminder)
            except Exception:
                self.scheduler.cancel(reminder.id)
                raise

        logger.info(f"Created reminder {reminder.id} for chat {chat_id}: fires {fire_at}")
        return reminder

    async def on_fire(self, job: ScheduledJob) -> None:
        """
        Deliver a fired reminder, then remove it from the store.

        The record is removed whether or not the send succeeded; there is
        no retry.
        """
        async with self._lock:
            try:
                delivered = await self.sender(job.chat_id, job.message)
            except Exception as e:
                logger.error(f"Failed to send reminder {job.reminder_id}: {e}", exc_info=True)
                delivered = False

            if delivered is False:
                logger.warning(f"Reminder {job.reminder_id} was not delivered to {job.chat_id}")
            else:
                logger.info(f"Sent reminder {job.reminder_id} to {job.chat_id}")

            try:
                await self.store.remove(job.reminder_id)
            except Exception as e:
                logger.error(f"Failed to remove reminder {job.reminder_id}: {e}", exc_info=True)

    async def reconcile_on_startup(self) -> int:
        """
        Rebuild timers from the store and drop reminders that already expired.

        Returns:
            Number of timers registered
        """
        async with self._lock:
            reminders = await self.store.load()
            now = self._clock()
            logger.info(f"Loading {len(reminders)} reminders from store")

            upcoming = []
            for reminder in reminders:
                if reminder.fire_at > now:
                    self.scheduler.schedule(self._job_for(reminder))
                    upcoming.append(reminder)
                else:
                    logger.warning(
                        f"Dropping expired reminder {reminder.id} (was due {reminder.fire_at})"
                    )

            await self.store.replace_all(upcoming)

        logger.info(f"Rescheduled {len(upcoming)} upcoming reminders")
        return len(upcoming)

    async def list_reminders(self, chat_id: str) -> list[Reminder]:
        """Pending reminders for a chat, soonest first. Read from disk on every call."""
        reminders = await self.store.load()
        return sorted((r for r in reminders if r.chat_id == chat_id), key=lambda r: r.fire_at)

    def close(self) -> None:
        """Stop all live timers."""
        self.scheduler.shutdown()

    @staticmethod
    def _job_for(reminder: Reminder) -> ScheduledJob:
        return ScheduledJob(
            reminder_id=reminder.id,
            fire_at=reminder.fire_at,
            chat_id=reminder.chat_id,
            message=reminder.message,
        )
