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
Command Interpreter Module

Classifies the text of a bot command as either a request to list
reminders or a "<date expression> <subject>" reminder request.
Date expressions are found with dateparser's search_dates.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Union

from dateparser.search import search_dates

logger = logging.getLogger("groupremind.reminders.interpreter")

LIST_COMMAND = "list reminders"

# Returns (matched text, resolved datetime) pairs in order of appearance
DateSearcher = Callable[[str], Sequence[tuple[str, datetime]]]


@dataclass(frozen=True)
class ListCommand:
    """Show the pending reminders of this chat."""


@dataclass(frozen=True)
class CreateCommand:
    """Create a reminder for subject, one day before event_at."""

    subject: str
    event_at: datetime


@dataclass(frozen=True)
class ParseFailure:
    """No date or time expression was found."""

    text: str


@dataclass(frozen=True)
class MissingSubject:
    """A date was found but nothing is left to remind about."""

    date_text: str


Command = Union[ListCommand, CreateCommand, ParseFailure, MissingSubject]


def search_event_dates(
    text: str, languages: Optional[list[str]] = None
) -> list[tuple[str, datetime]]:
    """
    Find date expressions in free text.

    Args:
        text: Command text
        languages: dateparser language codes (default: autodetect)

    Returns:
        (matched text, naive local datetime) pairs; empty if none found
    """
    settings = {
        "PREFER_DATES_FROM": "future",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    results = search_dates(text, languages=languages, settings=settings)
    return list(results or [])


def interpret_command(text: str, parse_dates: DateSearcher = search_event_dates) -> Command:
    """
    Turn command text into a command.

    Args:
        text: Message text with the trigger prefix already removed
        parse_dates: Date expression finder; only its first match is used

    Returns:
        ListCommand, CreateCommand, ParseFailure, or MissingSubject
    """
    text = text.strip()
    if text.lower() == LIST_COMMAND:
        return ListCommand()

    matches = parse_dates(text)
    if not matches:
        logger.debug(f"No date expression found in {text!r}")
        return ParseFailure(text=text)

    date_text, event_at = matches[0]
    subject = re.sub(r"\s{2,}", " ", text.replace(date_text, "", 1)).strip()
    if not subject:
        return MissingSubject(date_text=date_text)

    logger.debug(f"Parsed {date_text!r} as {event_at} with subject {subject!r}")
    return CreateCommand(subject=subject, event_at=event_at)
