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
Reminder Chat Commands

Listens for "@bot ..." messages in group channels and answers them:

    @bot list reminders
    @bot next Monday exam fees are due
"""

import asyncio
import functools
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

import discord
from discord.ext import commands

from reminders import (
    CreateCommand,
    ListCommand,
    MissingSubject,
    ParseFailure,
    Reminder,
    ReminderConfig,
    ReminderEngine,
    ReminderRejected,
    interpret_command,
    search_event_dates,
)
from reminders.interpreter import DateSearcher

logger = logging.getLogger("groupremind.commands.reminder")

SEPARATOR = "-----------------------------"

TOO_SOON_REPLY = "That date is too soon or already in the past! I can't set a reminder for it."
EMPTY_LIST_REPLY = "There are no upcoming reminders for this group. Zilch! Nada! 🎉"
ERROR_REPLY = "Oops, something went wrong. Please try again."
LIST_HEADER = "⏰ **Upcoming Reminders for this Group** ⏰"

Reply = Callable[[str], Awaitable[object]]


def format_when(value: datetime) -> str:
    """Format a fire time for chat display."""
    return value.strftime("%a %d %b %Y, %H:%M")


def format_day(value: datetime) -> str:
    """Format an event date for chat display."""
    return value.strftime("%a %d %b %Y")


def format_reminder_list(reminders: list[Reminder]) -> str:
    """Render the reply to "list reminders"."""
    if not reminders:
        return EMPTY_LIST_REPLY

    lines = [LIST_HEADER]
    for r in reminders:
        lines.extend([
            "",
            SEPARATOR,
            f"**Subject:** {r.subject}",
            f"**Event Date:** {format_day(r.event_at)}",
            f"**Reminder On:** {format_when(r.fire_at)}",
        ])
    return "\n".join(lines)


class ReminderCommands(commands.Cog):
    """
    Chat commands for group reminders.

    Commands (group channels only, prefixed with the trigger):
    - list reminders - Show this group's pending reminders
    - <date> <subject> - Remind the group the day before <date>
    """

    def __init__(
        self,
        bot: commands.Bot,
        engine: ReminderEngine,
        config: Optional[ReminderConfig] = None,
        parse_dates: Optional[DateSearcher] = None,
    ):
        self.bot = bot
        self.engine = engine
        self.config = config or ReminderConfig()
        self.parse_dates = parse_dates or functools.partial(
            search_event_dates, languages=self.config.date_languages
        )

    # =========================================================================
    # Message listener
    # =========================================================================

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Route triggered group messages to the command handler."""
        if message.author.bot:
            return

        text = self.extract_command(message.content)
        if text is None:
            return

        # Only respond in groups
        if message.guild is None:
            logger.debug(f"Ignoring command from non-group chat {message.channel.id}")
            return

        logger.info(f"Received command from group: {message.guild.name} (#{message.channel})")

        async def reply(content: str):
            return await self.bot.send_chunked(message.channel, content, reply_to=message)

        await self.handle_command(text, str(message.channel.id), reply)

    def extract_command(self, content: str) -> Optional[str]:
        """
        Strip the trigger from a message.

        Returns:
            Command text, or None if the message is not addressed to the bot
        """
        content = content.strip()
        prefixes = [self.config.trigger_prefix]
        if self.bot.user is not None:
            prefixes += [f"<@{self.bot.user.id}>", f"<@!{self.bot.user.id}>"]

        for prefix in prefixes:
            if prefix and content.startswith(prefix):
                return content[len(prefix):].strip()
        return None

    # =========================================================================
    # Command handling
    # =========================================================================

    async def handle_command(self, text: str, chat_id: str, reply: Reply) -> None:
        """
        Interpret a command and answer it.

        Never raises: unexpected errors are logged and answered with a
        generic apology.
        """
        try:
            # dateparser is CPU-bound
            command = await asyncio.to_thread(interpret_command, text, self.parse_dates)
            response = await self._respond(command, chat_id)
        except Exception as e:
            logger.error(f"Error handling command {text!r}: {e}", exc_info=True)
            response = ERROR_REPLY

        try:
            await reply(response)
        except discord.HTTPException as e:
            logger.error(f"Failed to reply in chat {chat_id}: {e}")

    async def _respond(self, command, chat_id: str) -> str:
        prefix = self.config.trigger_prefix

        if isinstance(command, ListCommand):
            reminders = await self.engine.list_reminders(chat_id)
            return format_reminder_list(reminders)

        if isinstance(command, ParseFailure):
            return (
                "Sorry, I couldn't understand the date or time. Try something like:\n\n"
                f"**{prefix} next Monday exam fees are due**"
            )

        if isinstance(command, MissingSubject):
            return (
                "Please provide a subject for the reminder. Example:\n"
                f"**{prefix} tomorrow submit the assignment**"
            )

        if isinstance(command, CreateCommand):
            try:
                reminder = await self.engine.create_reminder(
                    chat_id, command.subject, command.event_at
                )
            except ReminderRejected:
                return TOO_SOON_REPLY
            return f"Got it! 👍\n\nI'll remind this group on **{format_when(reminder.fire_at)}**."

        raise TypeError(f"Unknown command type: {type(command).__name__}")
