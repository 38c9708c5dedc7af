"""
Unit tests for the completion tracker.
"""

import asyncio
import pytest
from datetime import datetime, timezone

from moodmirror.core.completion import CompletionTracker, KeyedLocks
from moodmirror.core.errors import StoreUnavailable
from moodmirror.storage import InMemoryKVStore, RecordStore

from conftest import make_camera, make_survey

DAY = "2024-03-06"


class SlowKVStore(InMemoryKVStore):
    """Yields to the event loop between every read and write."""

    async def get(self, key):
        value = await super().get(key)
        await asyncio.sleep(0.01)
        return value

    async def set(self, key, value):
        await asyncio.sleep(0.01)
        await super().set(key, value)


class FailingKVStore(InMemoryKVStore):
    async def set(self, key, value):
        raise StoreUnavailable("Record store unavailable: disk full")


class TestMarkCompleted:

    @pytest.mark.asyncio
    async def test_sets_flag_and_timestamp(self, records):
        now = datetime(2024, 3, 6, 9, 30, tzinfo=timezone.utc)
        status = await CompletionTracker(records).mark_completed("u1", DAY, "survey", now=now)

        assert status.survey_completed is True
        assert status.survey_completed_at == "2024-03-06T09:30:00+00:00"
        assert status.camera_completed is False
        assert await records.get_completion("u1", DAY) == status

    @pytest.mark.asyncio
    async def test_merges_with_existing_flags(self, records):
        tracker = CompletionTracker(records)
        await tracker.mark_completed("u1", DAY, "camera")
        status = await tracker.mark_completed("u1", DAY, "survey")

        assert status.survey_completed and status.camera_completed
        assert status.camera_completed_at is not None

    @pytest.mark.asyncio
    async def test_same_kind_twice_is_idempotent(self, records):
        tracker = CompletionTracker(records)
        await tracker.mark_completed("u1", DAY, "survey")
        status = await tracker.mark_completed("u1", DAY, "survey")
        assert status.survey_completed and not status.camera_completed

    @pytest.mark.asyncio
    async def test_unknown_kind(self, records):
        with pytest.raises(ValueError, match="Unknown completion kind"):
            await CompletionTracker(records).mark_completed("u1", DAY, "diary")

    @pytest.mark.asyncio
    async def test_concurrent_survey_and_camera_keep_both_flags(self):
        records = RecordStore(SlowKVStore())
        tracker = CompletionTracker(records, KeyedLocks())

        await asyncio.gather(
            tracker.mark_completed("u1", DAY, "survey"),
            tracker.mark_completed("u1", DAY, "camera"),
        )

        status = await records.get_completion("u1", DAY)
        assert status.survey_completed is True
        assert status.camera_completed is True

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        tracker = CompletionTracker(RecordStore(FailingKVStore()))
        with pytest.raises(StoreUnavailable):
            await tracker.mark_completed("u1", DAY, "camera")


class TestDerivedStatus:

    @pytest.mark.asyncio
    async def test_get_status_falls_back_to_record_presence(self, records):
        await records.save_camera_mood("u1", make_camera(DAY))

        status = await CompletionTracker(records).get_status("u1", DAY)
        assert status.camera_completed is True
        assert status.survey_completed is False
        assert await records.get_completion("u1", DAY) is None

    @pytest.mark.asyncio
    async def test_get_status_prefers_stored_flags(self, records):
        tracker = CompletionTracker(records)
        await tracker.mark_completed("u1", DAY, "survey")
        status = await tracker.get_status("u1", DAY)
        assert status.survey_completed is True

    @pytest.mark.asyncio
    async def test_reconcile_rebuilds_flags(self, records):
        tracker = CompletionTracker(records)
        await tracker.mark_completed("u1", DAY, "camera")
        await records.save_survey("u1", make_survey(DAY))

        status = await tracker.reconcile("u1", DAY)
        assert status.survey_completed is True
        # no camera record exists, so the stale flag is cleared
        assert status.camera_completed is False
        assert await records.get_completion("u1", DAY) == status


def test_keyed_locks_share_lock_per_key():
    locks = KeyedLocks()
    first = locks.get("user:u1:completion:2024-03-06")
    assert locks.get("user:u1:completion:2024-03-06") is first
    assert locks.get("user:u2:completion:2024-03-06") is not first
