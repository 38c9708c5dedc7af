"""
Completion Tracker - Maintains the per-day survey/camera completion flags.

The completion record is a derived cache. The day's survey and camera
records are the source of truth, and `reconcile` rebuilds the flags from
their presence.
"""

import asyncio
import logging
import weakref
from datetime import datetime, timezone
from typing import Literal, Optional

from ..models import CompletionStatus
from ..storage import RecordStore

logger = logging.getLogger(__name__)

CompletionKind = Literal["survey", "camera"]


class KeyedLocks:
    """
    Registry of asyncio locks keyed by string.

    Owned by the application (not a module global); entries disappear once
    no coroutine holds the lock.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


class CompletionTracker:
    """Read-modify-write of CompletionStatus records."""

    def __init__(self, records: RecordStore, locks: Optional[KeyedLocks] = None):
        """
        Args:
            records: Record store for the completion keys
            locks: Shared lock registry; merges for the same (user, date) are
                serialized within this process
        """
        self.records = records
        self.locks = locks or KeyedLocks()

    async def mark_completed(
        self,
        user_id: str,
        date: str,
        kind: CompletionKind,
        now: Optional[datetime] = None,
    ) -> CompletionStatus:
        """
        Set the survey or camera flag for a day.

        The current record is read immediately before the write so a
        concurrent merge of the other kind is not lost.

        Args:
            user_id: User ID
            date: Day as YYYY-MM-DD
            kind: "survey" or "camera"
            now: Completion instant (defaults to the current UTC time)

        Returns:
            CompletionStatus: The merged status that was written

        Raises:
            StoreUnavailable: If the store cannot be read or written
        """
        if kind not in ("survey", "camera"):
            raise ValueError(f"Unknown completion kind: {kind}")

        stamp = (now or datetime.now(timezone.utc)).isoformat()
        key = self.records.completion_key(user_id, date)

        async with self.locks.get(key):
            current = await self.records.get_completion(user_id, date) or CompletionStatus()
            if kind == "survey":
                merged = current.model_copy(update={"survey_completed": True, "survey_completed_at": stamp})
            else:
                merged = current.model_copy(update={"camera_completed": True, "camera_completed_at": stamp})
            await self.records.save_completion(user_id, date, merged)

        logger.debug(f"Marked {kind} completed for user {user_id} on {date}")
        return merged

    async def derive(self, user_id: str, date: str) -> CompletionStatus:
        """Completion status computed from the presence of the day's records."""
        survey = await self.records.get_survey(user_id, date)
        camera = await self.records.get_camera_mood(user_id, date)
        return CompletionStatus(
            survey_completed=survey is not None,
            camera_completed=camera is not None,
            survey_completed_at=survey.completed_at if survey else None,
            camera_completed_at=camera.completed_at if camera else None,
        )

    async def get_status(self, user_id: str, date: str) -> CompletionStatus:
        """Stored status, falling back to a status derived from the day's records."""
        stored = await self.records.get_completion(user_id, date)
        if stored is not None:
            return stored
        return await self.derive(user_id, date)

    async def reconcile(self, user_id: str, date: str) -> CompletionStatus:
        """Rebuild the stored flags from record presence."""
        key = self.records.completion_key(user_id, date)
        async with self.locks.get(key):
            status = await self.derive(user_id, date)
            await self.records.save_completion(user_id, date, status)
        if status.survey_completed or status.camera_completed:
            logger.info(f"Reconciled completion for user {user_id} on {date}")
        return status
