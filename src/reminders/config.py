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
Reminder Configuration

Configurable parameters for reminder storage, scheduling, and commands.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass, field


@dataclass
class ReminderConfig:
    """Configuration for the reminder bot."""

    # Storage settings
    reminders_file: str = "reminders.json"

    # Command settings
    trigger_prefix: str = "@bot"
    date_languages: list[str] = field(default_factory=lambda: ["en"])

    # Reminders fire the day before the event at reminder_hour:00 local
    reminder_hour: int = 9

    # How often the scheduler loop checks for due reminders
    poll_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "ReminderConfig":
        """Create config from environment variables with defaults."""
        languages = os.getenv("DATE_LANGUAGES", "en")
        return cls(
            reminders_file=os.getenv("REMINDERS_FILE", "reminders.json"),
            trigger_prefix=os.getenv("BOT_TRIGGER", "@bot"),
            date_languages=[lang.strip() for lang in languages.split(",") if lang.strip()],
            reminder_hour=int(os.getenv("REMINDER_HOUR", "9")),
            poll_seconds=float(os.getenv("SCHEDULER_POLL_SECONDS", "60")),
        )
