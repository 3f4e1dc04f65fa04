"""
groupremind Discord Bot

Maintains the Discord connection, reconciles stored reminders once the
gateway is ready, and delivers fired reminders back into their channels.
Group commands are handled by the ReminderCommands cog.
"""

import asyncio
import logging
import os
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

from commands.reminder_commands import ReminderCommands
from reminders import ReminderConfig, ReminderEngine, ReminderScheduler, ReminderStore

load_dotenv()

# Discord message length limit
DISCORD_MAX_LENGTH = 2000

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("groupremind")


class DiscordBot(commands.Bot):
    """Discord bot that schedules group reminders from chat messages."""

    def __init__(self, config: Optional[ReminderConfig] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        super().__init__(command_prefix="!", intents=intents)

        self.config = config or ReminderConfig.from_env()
        self.store = ReminderStore(self.config.reminders_file)
        self.scheduler = ReminderScheduler(poll_seconds=self.config.poll_seconds)
        self.engine = ReminderEngine(
            self.store, self.scheduler, self.send_message, config=self.config
        )
        self._reconciled = False

    async def setup_hook(self):
        """Called when the bot is starting up."""
        logger.info(f"Setup: REMINDERS_FILE={self.config.reminders_file}")
        logger.info(f"Setup: BOT_TRIGGER={self.config.trigger_prefix}")
        logger.info(f"Setup: DATE_LANGUAGES={','.join(self.config.date_languages)}")

        await self.add_cog(ReminderCommands(self, self.engine, self.config))
        self.scheduler.start()

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

        # on_ready fires again after reconnects; timers are already live then
        if self._reconciled:
            return
        self._reconciled = True
        try:
            await self.engine.reconcile_on_startup()
        except Exception as e:
            logger.error(f"Failed to reschedule stored reminders: {e}", exc_info=True)

    def _chunk_message(self, content: str) -> list[str]:
        """Split a message into chunks that fit Discord's 2000 char limit.

        Prefers paragraph breaks, then line breaks, then word breaks.
        """
        chunks = []
        remaining = content

        while remaining:
            if len(remaining) <= DISCORD_MAX_LENGTH:
                chunks.append(remaining)
                break

            break_at = DISCORD_MAX_LENGTH

            para_idx = remaining.rfind("\n\n", 0, DISCORD_MAX_LENGTH)
            if para_idx > DISCORD_MAX_LENGTH // 2:
                break_at = para_idx + 2
            else:
                newline_idx = remaining.rfind("\n", 0, DISCORD_MAX_LENGTH)
                if newline_idx > DISCORD_MAX_LENGTH // 2:
                    break_at = newline_idx + 1
                else:
                    space_idx = remaining.rfind(" ", 0, DISCORD_MAX_LENGTH)
                    if space_idx > DISCORD_MAX_LENGTH // 2:
                        break_at = space_idx + 1

            chunks.append(remaining[:break_at].rstrip())
            remaining = remaining[break_at:].lstrip()

        return chunks

    async def send_chunked(
        self, channel: discord.abc.Messageable, content: str, reply_to: discord.Message = None
    ) -> discord.Message:
        """Send a message, splitting into chunks if needed. Returns the last message sent."""
        chunks = self._chunk_message(content)
        last_msg = None

        for i, chunk in enumerate(chunks):
            if i == 0 and reply_to:
                last_msg = await reply_to.reply(chunk)
            else:
                last_msg = await channel.send(chunk)

        return last_msg

    async def send_message(self, chat_id: str, content: str) -> bool:
        """
        Send text to a channel by ID. Used to deliver fired reminders.

        Returns:
            True if sent, False if the channel could not be reached
        """
        try:
            channel = self.get_channel(int(chat_id))
            if channel is None:
                channel = await self.fetch_channel(int(chat_id))
            await self.send_chunked(channel, content)
            return True
        except (discord.HTTPException, discord.InvalidData, ValueError) as e:
            logger.error(f"Failed to send message to {chat_id}: {e}")
            return False

    async def close(self):
        """Clean up resources on shutdown."""
        self.engine.close()
        await super().close()


async def main():
    """Run the bot."""
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = DiscordBot()
    await bot.start(token)


if __name__ == "__main__":
    asyncio.run(main())
