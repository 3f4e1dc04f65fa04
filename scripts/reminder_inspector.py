"""
Reminder Inspector CLI

Debug tool for inspecting the reminder store without starting the bot.

Usage:
    # List all stored reminders
    python scripts/reminder_inspector.py list

    # List reminders for one channel, with full message text
    python scripts/reminder_inspector.py list --chat-id 123456789 --verbose

    # Show store statistics
    python scripts/reminder_inspector.py stats

    # Drop reminders whose fire time has passed (same rule as startup)
    python scripts/reminder_inspector.py purge-expired --dry-run

The store path comes from --file, then REMINDERS_FILE, then reminders.json.
"""

import argparse
import asyncio
import logging
import os
import sys
from collections import Counter
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders import Reminder, ReminderStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def format_datetime(dt: datetime) -> str:
    """Format datetime for display."""
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


async def list_reminders(store: ReminderStore, chat_id: str = None, verbose: bool = False):
    """List stored reminders, soonest first."""
    reminders = await store.load()
    if chat_id:
        reminders = [r for r in reminders if r.chat_id == chat_id]

    if not reminders:
        logger.info("No reminders found.")
        return

    now = datetime.now()
    for r in sorted(reminders, key=lambda r: r.fire_at):
        marker = " (expired)" if r.is_due(now) else ""
        logger.info(f"{r.id}{marker}")
        logger.info(f"  chat:    {r.chat_id}")
        logger.info(f"  fires:   {format_datetime(r.fire_at)}")
        logger.info(f"  event:   {format_datetime(r.event_at)}")
        logger.info(f"  subject: {r.subject if verbose else truncate(r.subject)}")
        if verbose:
            logger.info(f"  message: {r.message!r}")
    logger.info(f"\n{len(reminders)} reminder(s)")


async def show_stats(store: ReminderStore, now: datetime = None) -> dict:
    """Show totals and per-chat counts."""
    reminders = await store.load()
    now = now or datetime.now()
    expired = [r for r in reminders if r.is_due(now)]
    per_chat = Counter(r.chat_id for r in reminders)

    logger.info(f"Store:    {store.path}")
    logger.info(f"Total:    {len(reminders)}")
    logger.info(f"Pending:  {len(reminders) - len(expired)}")
    logger.info(f"Expired:  {len(expired)}")

    if reminders:
        next_up = min(reminders, key=lambda r: r.fire_at)
        logger.info(f"Earliest: {format_datetime(next_up.fire_at)} ({next_up.id})")

    if per_chat:
        logger.info("\nBy chat:")
        for chat_id, count in per_chat.most_common():
            logger.info(f"  {chat_id}: {count}")

    return {
        "total": len(reminders),
        "pending": len(reminders) - len(expired),
        "expired": len(expired),
        "per_chat": dict(per_chat),
    }


async def purge_expired(
    store: ReminderStore, dry_run: bool = False, now: datetime = None
) -> list[Reminder]:
    """Remove reminders whose fire time has passed."""
    reminders = await store.load()
    now = now or datetime.now()
    expired = [r for r in reminders if r.is_due(now)]

    for r in expired:
        logger.info(f"{'Would drop' if dry_run else 'Dropping'} {r.id} (was due {format_datetime(r.fire_at)})")

    if expired and not dry_run:
        await store.replace_all(r for r in reminders if not r.is_due(now))

    logger.info(f"{len(expired)} expired reminder(s){' (dry run)' if dry_run else ''}")
    return expired


async def main_async(args):
    """Async main function."""
    path = args.file or os.environ.get("REMINDERS_FILE", "reminders.json")
    store = ReminderStore(path)

    if args.command == "list":
        await list_reminders(store, chat_id=args.chat_id, verbose=args.verbose)
    elif args.command == "stats":
        await show_stats(store)
    elif args.command == "purge-expired":
        await purge_expired(store, dry_run=args.dry_run)


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Reminder Inspector CLI - Inspect and clean up the reminder store"
    )
    parser.add_argument("--file", "-f", help="Path to reminders.json")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # List command
    list_parser = subparsers.add_parser("list", help="List stored reminders")
    list_parser.add_argument("--chat-id", help="Filter by channel ID")
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show full details"
    )

    # Stats command
    subparsers.add_parser("stats", help="Show store statistics")

    # Purge command
    purge_parser = subparsers.add_parser(
        "purge-expired", help="Drop reminders whose fire time has passed"
    )
    purge_parser.add_argument(
        "--dry-run", action="store_true", help="Only report what would be dropped"
    )

    args = parser.parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
