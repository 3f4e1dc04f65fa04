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
Reminder Store Module

Persists pending reminders to a single JSON file (an array of records).
The whole collection is read and rewritten on every change; writes go to
a temporary file that is renamed over the target.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Union

from .models import Reminder

logger = logging.getLogger("groupremind.reminders.store")


class ReminderStore:
    """
    File-backed collection of pending reminders.

    Every load-modify-save sequence runs under one asyncio lock so that
    overlapping creates and firings cannot drop each other's writes.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the reminder store.

        Args:
            path: Path of the JSON file (created on first load if missing)
        """
        self.path = Path(path)
        self._lock = asyncio.Lock()

    # =========================================================================
    # Whole-collection access
    # =========================================================================

    async def load(self) -> list[Reminder]:
        """
        Read every stored reminder.

        A missing file is initialized to an empty collection. An unreadable
        file is logged, moved aside to <name>.bak, and treated as empty.

        Returns:
            List of reminders in file order
        """
        # Reading can write (initializing or moving the file), so it is locked too
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def save(self, reminders: Iterable[Reminder]) -> None:
        """Overwrite the file with the given reminders."""
        async with self._lock:
            await asyncio.to_thread(self._write, list(reminders))

    # =========================================================================
    # Serialized mutations
    # =========================================================================

    async def add(self, reminder: Reminder) -> None:
        """
        Append a reminder.

        A stored record with the same ID is replaced, matching the
        scheduler, which keeps one timer per ID.
        """
        async with self._lock:
            stored = await asyncio.to_thread(self._read)
            reminders = [r for r in stored if r.id != reminder.id]
            if len(reminders) != len(stored):
                logger.warning(f"Reminder {reminder.id} already stored, replacing it")
            reminders.append(reminder)
            await asyncio.to_thread(self._write, reminders)
        logger.info(f"Stored reminder {reminder.id} ({len(reminders)} pending)")

    async def remove(self, reminder_id: str) -> bool:
        """
        Delete a reminder by ID.

        Returns:
            True if a record was removed, False if the ID was not stored
        """
        async with self._lock:
            reminders = await asyncio.to_thread(self._read)
            remaining = [r for r in reminders if r.id != reminder_id]
            if len(remaining) == len(reminders):
                logger.debug(f"Reminder {reminder_id} not in store, nothing to remove")
                return False
            await asyncio.to_thread(self._write, remaining)
        logger.info(f"Removed reminder {reminder_id} from store")
        return True

    async def replace_all(self, reminders: Iterable[Reminder]) -> None:
        """Overwrite the whole collection, as done by startup reconciliation."""
        reminders = list(reminders)
        await self.save(reminders)
        logger.info(f"Store now holds {len(reminders)} reminder(s)")

    # =========================================================================
    # File I/O (runs in a worker thread)
    # =========================================================================

    def _read(self) -> list[Reminder]:
        if not self.path.exists():
            logger.info(f"No reminder file at {self.path}, creating an empty one")
            try:
                self._write([])
            except OSError as e:
                logger.error(f"Failed to initialize reminder file {self.path}: {e}")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Could not read reminder file {self.path}: {e}")
            self._move_aside()
            return []

        if not isinstance(data, list):
            logger.error(f"Reminder file {self.path} does not hold a JSON array")
            self._move_aside()
            return []

        reminders = []
        for record in data:
            try:
                reminders.append(Reminder.from_dict(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping invalid reminder record {record!r}: {e}")
        return reminders

    def _write(self, reminders: list[Reminder]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([r.to_dict() for r in reminders], indent=2, ensure_ascii=False)

        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {len(reminders)} reminders to {self.path}")

    def _move_aside(self) -> None:
        """Keep an unreadable file as <name>.bak so a later save cannot destroy it."""
        backup_path = self.path.with_name(self.path.name + ".bak")
        try:
            os.replace(self.path, backup_path)
            logger.warning(f"Moved unreadable reminder file to {backup_path}")
        except OSError as e:
            logger.error(f"Failed to back up unreadable reminder file: {e}")
