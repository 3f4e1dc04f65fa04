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
Group Reminders Package

One-time reminders parsed from chat messages, delivered back into the chat
the day before the event.
"""

from .config import ReminderConfig
from .engine import ReminderEngine, render_message
from .interpreter import (
    CreateCommand,
    ListCommand,
    MissingSubject,
    ParseFailure,
    interpret_command,
    search_event_dates,
)
from .models import Reminder, ReminderError, ReminderRejected, make_reminder_id
from .scheduler import ReminderScheduler, ScheduledJob
from .store import ReminderStore

__all__ = [
    "ReminderConfig",
    "ReminderEngine",
    "render_message",
    "CreateCommand",
    "ListCommand",
    "MissingSubject",
    "ParseFailure",
    "interpret_command",
    "search_event_dates",
    "Reminder",
    "ReminderError",
    "ReminderRejected",
    "make_reminder_id",
    "ReminderScheduler",
    "ScheduledJob",
    "ReminderStore",
]
