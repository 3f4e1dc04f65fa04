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

"""Tests for the JSON reminder store and the on-disk record format."""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.models import (
    Reminder,
    format_timestamp,
    make_reminder_id,
    parse_timestamp,
)
from reminders.store import ReminderStore


def make_reminder(chat_id: str = "111", fire_at: datetime = None, subject: str = "exam fees due") -> Reminder:
    fire_at = fire_at or datetime(2026, 3, 8, 9, 0)
    return Reminder(
        id=make_reminder_id(chat_id, fire_at),
        chat_id=chat_id,
        message=f"Tomorrow: {subject}",
        fire_at=fire_at,
        subject=subject,
        event_at=datetime(2026, 3, 9, 14, 30, 0, 250000),
    )


# Record as written by the original bot
LEGACY_RECORD = {
    "id": "reminder_120363025@g.us_1772956800000",
    "chatId": "120363025@g.us",
    "reminderMessage": "🔔 *REMINDER* 🔔\n\nTomorrow: exam fees are due 📅",
    "remindAt": "2026-03-08T08:00:00.000Z",
    "originalSubject": "exam fees are due",
    "originalDate": "2026-03-09T11:00:00.000Z",
}


class TestRecordFormat:
    """Test conversion between Reminder and stored JSON records."""

    def test_to_dict_key_order(self):
        data = make_reminder().to_dict()
        assert list(data) == [
            "id", "chatId", "reminderMessage", "remindAt", "originalSubject", "originalDate",
        ]

    def test_timestamps_written_as_utc_milliseconds(self):
        stamp = format_timestamp(datetime(2026, 3, 8, 9, 0))
        assert stamp.endswith("Z")
        assert len(stamp) == len("2026-03-08T09:00:00.000Z")

    def test_timestamp_round_trip(self):
        value = datetime(2026, 3, 9, 14, 30, 0, 250000)
        assert parse_timestamp(format_timestamp(value)) == value

    def test_parse_legacy_record(self):
        reminder = Reminder.from_dict(LEGACY_RECORD)
        expected = datetime(2026, 3, 8, 8, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert reminder.fire_at == expected
        assert reminder.fire_at.tzinfo is None
        assert reminder.chat_id == "120363025@g.us"
        assert reminder.subject == "exam fees are due"

    def test_legacy_record_round_trips_unchanged(self):
        assert Reminder.from_dict(LEGACY_RECORD).to_dict() == LEGACY_RECORD

    def test_parse_offset_and_naive_timestamps(self):
        assert parse_timestamp("2026-03-08T09:00:00") == datetime(2026, 3, 8, 9, 0)
        aware = datetime(2026, 3, 8, 10, 0, tzinfo=timezone.utc)
        assert parse_timestamp("2026-03-08T12:00:00+02:00") == aware.astimezone().replace(tzinfo=None)

    def test_reminder_id_is_deterministic(self):
        fire_at = datetime(2026, 3, 8, 9, 0)
        expected_ms = int(fire_at.timestamp() * 1000)
        assert make_reminder_id("42", fire_at) == f"reminder_42_{expected_ms}"
        assert make_reminder_id("42", fire_at) == make_reminder_id("42", fire_at)
        assert make_reminder_id("42", fire_at) != make_reminder_id("43", fire_at)

    def test_is_due(self):
        reminder = make_reminder(fire_at=datetime(2026, 3, 8, 9, 0))
        assert reminder.is_due(datetime(2026, 3, 8, 9, 0))
        assert not reminder.is_due(datetime(2026, 3, 8, 8, 59))


class TestLoad:
    """Test reading the store file."""

    @pytest.mark.asyncio
    async def test_missing_file_creates_empty_collection(self, tmp_path):
        path = tmp_path / "reminders.json"
        store = ReminderStore(path)

        assert await store.load() == []
        assert path.exists()
        assert json.loads(path.read_text()) == []

    @pytest.mark.asyncio
    async def test_missing_directory_is_created(self, tmp_path):
        path = tmp_path / "data" / "reminders.json"
        store = ReminderStore(path)

        assert await store.load() == []
        assert path.exists()

    @pytest.mark.asyncio
    async def test_corrupt_file_returns_empty_and_is_kept(self, tmp_path):
        path = tmp_path / "reminders.json"
        path.write_text("[{not json")
        store = ReminderStore(path)

        assert await store.load() == []
        backup = tmp_path / "reminders.json.bak"
        assert backup.read_text() == "[{not json"

    @pytest.mark.asyncio
    async def test_non_array_file_returns_empty(self, tmp_path):
        path = tmp_path / "reminders.json"
        path.write_text('{"reminders": []}')
        store = ReminderStore(path)

        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_invalid_records_are_skipped(self, tmp_path):
        path = tmp_path / "reminders.json"
        path.write_text(json.dumps([
            LEGACY_RECORD,
            {"id": "broken"},
            {**LEGACY_RECORD, "id": "bad-date", "remindAt": "not a date"},
        ]))
        store = ReminderStore(path)

        reminders = await store.load()
        assert [r.id for r in reminders] == [LEGACY_RECORD["id"]]


class TestSave:
    """Test writing the store file."""

    @pytest.mark.asyncio
    async def test_save_then_load(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        reminders = [
            make_reminder("1", datetime(2026, 3, 8, 9, 0)),
            make_reminder("2", datetime(2026, 3, 10, 9, 0), subject="pay rent"),
        ]

        await store.save(reminders)
        assert await store.load() == reminders

    @pytest.mark.asyncio
    async def test_save_of_load_leaves_file_unchanged(self, tmp_path):
        path = tmp_path / "reminders.json"
        store = ReminderStore(path)
        await store.save([make_reminder("1"), make_reminder("2", subject="pay rent")])
        before = path.read_text()

        await store.save(await store.load())
        assert path.read_text() == before

    @pytest.mark.asyncio
    async def test_save_is_pretty_printed(self, tmp_path):
        path = tmp_path / "reminders.json"
        store = ReminderStore(path)
        await store.save([make_reminder()])

        assert path.read_text().startswith('[\n  {\n    "id": ')

    @pytest.mark.asyncio
    async def test_save_leaves_no_temp_files(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        await store.save([make_reminder()])
        await store.save([])

        assert [p.name for p in tmp_path.iterdir()] == ["reminders.json"]


class TestMutations:
    """Test add/remove/replace_all."""

    @pytest.mark.asyncio
    async def test_add_appends(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        first = make_reminder("1")
        second = make_reminder("2")

        await store.add(first)
        await store.add(second)
        assert await store.load() == [first, second]

    @pytest.mark.asyncio
    async def test_remove_by_id(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        keep = make_reminder("1")
        drop = make_reminder("2")
        await store.save([keep, drop])

        assert await store.remove(drop.id) is True
        assert await store.load() == [keep]

    @pytest.mark.asyncio
    async def test_remove_unknown_id_is_noop(self, tmp_path):
        path = tmp_path / "reminders.json"
        store = ReminderStore(path)
        await store.save([make_reminder("1")])
        before = path.read_text()

        assert await store.remove("reminder_nope_0") is False
        assert await store.remove("reminder_nope_0") is False
        assert path.read_text() == before

    @pytest.mark.asyncio
    async def test_replace_all(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        await store.save([make_reminder("1"), make_reminder("2")])

        await store.replace_all([make_reminder("3")])
        assert [r.chat_id for r in await store.load()] == ["3"]

    @pytest.mark.asyncio
    async def test_concurrent_adds_are_not_lost(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        reminders = [
            make_reminder(str(i), datetime(2026, 3, 8, 9, 0)) for i in range(20)
        ]

        await asyncio.gather(*(store.add(r) for r in reminders))

        stored = await store.load()
        assert sorted(r.id for r in stored) == sorted(r.id for r in reminders)

    @pytest.mark.asyncio
    async def test_concurrent_add_and_remove(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        existing = [make_reminder(str(i)) for i in range(5)]
        await store.save(existing)
        new = [make_reminder(str(i)) for i in range(5, 10)]

        await asyncio.gather(
            *(store.remove(r.id) for r in existing),
            *(store.add(r) for r in new),
        )

        assert sorted(r.id for r in await store.load()) == sorted(r.id for r in new)

    @pytest.mark.asyncio
    async def test_reads_during_add_on_missing_file(self, tmp_path):
        # Loading a missing file writes an empty one; it must not clobber an add
        for i in range(50):
            store = ReminderStore(tmp_path / f"reminders-{i}.json")
            reminder = make_reminder(str(i))

            await asyncio.gather(store.load(), store.add(reminder), store.load(), store.load())

            assert await store.load() == [reminder]

    @pytest.mark.asyncio
    async def test_add_replaces_record_with_same_id(self, tmp_path):
        store = ReminderStore(tmp_path / "reminders.json")
        other = make_reminder("2")
        first = make_reminder("1", subject="exam A")
        second = make_reminder("1", subject="exam B")
        assert first.id == second.id

        await store.add(first)
        await store.add(other)
        await store.add(second)

        assert await store.load() == [other, second]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
