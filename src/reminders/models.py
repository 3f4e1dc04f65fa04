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
Reminder Models

Data structures for one-time group reminders and their on-disk form.

Timestamps are naive datetimes in local wall-clock time. On disk they are
written as ISO-8601 UTC strings with millisecond precision and a trailing
"Z", which is the format reminders.json has always used.
"""

from dataclasses import dataclass
from datetime import datetime, timezone


class ReminderError(Exception):
    """Base exception for reminder errors."""

    pass


class ReminderRejected(ReminderError):
    """Raised when a reminder cannot be accepted (e.g. fire time already passed)."""

    def __init__(self, reason: str, fire_at: datetime):
        super().__init__(f"Reminder rejected ({reason}): fire time {fire_at.isoformat()}")
        self.reason = reason
        self.fire_at = fire_at


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time. Naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    """Serialize a local datetime as ISO-8601 UTC, e.g. 2026-03-01T08:00:00.000Z."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into naive local time."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_local_naive(datetime.fromisoformat(value))


def make_reminder_id(chat_id: str, fire_at: datetime) -> str:
    """
    Derive a reminder ID from its chat and fire time.

    Two reminders for the same chat firing in the same millisecond get the
    same ID.
    """
    epoch_ms = int(round(fire_at.timestamp() * 1000))
    return f"reminder_{chat_id}_{epoch_ms}"


@dataclass(frozen=True)
class Reminder:
    """A pending one-time reminder for a chat."""

    id: str
    chat_id: str
    message: str  # Fully rendered notification text
    fire_at: datetime
    subject: str  # Shown by "list reminders"
    event_at: datetime

    def is_due(self, now: datetime) -> bool:
        """True once the fire time has been reached."""
        return self.fire_at <= now

    def to_dict(self) -> dict:
        """Convert to the JSON record stored in reminders.json."""
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "reminderMessage": self.message,
            "remindAt": format_timestamp(self.fire_at),
            "originalSubject": self.subject,
            "originalDate": format_timestamp(self.event_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Reminder":
        """Create a Reminder from a stored JSON record."""
        return cls(
            id=str(data["id"]),
            chat_id=str(data["chatId"]),
            message=data["reminderMessage"],
            fire_at=parse_timestamp(data["remindAt"]),
            subject=data["originalSubject"],
            event_at=parse_timestamp(data["originalDate"]),
        )
