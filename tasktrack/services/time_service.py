"""Time service - business logic for time tracking."""
import logging
import math
from datetime import datetime
from typing import Optional

from tasktrack.database import parse_object_id
from tasktrack.exceptions import DurationValidationError
from tasktrack.models.time_entry import RunningTimer, TimeEntry, TimeEntryCreate, TimeEntryWithUser
from tasktrack.services.profile_service import ProfileService
from tasktrack.services.timer_store import MongoTimerStore, TimerStore
from tasktrack.utils.clock import to_naive_utc, utcnow
from tasktrack.utils.permissions import ensure_can_mutate_time
from tasktrack.utils.timesheet import normalize_minutes

logger = logging.getLogger(__name__)

MINIMUM_ENTRY_MINUTES = 1


class TimeService:
    """Service for handling time tracking operations."""

    def __init__(self, db, timer_store: Optional[TimerStore] = None):
        """Initialize service with database connection and timer store."""
        self.db = db
        self.time_entries = db["time_entries"]
        self.tasks = db["tasks"]
        self.profile_service = ProfileService(db)
        self.timer_store = timer_store or MongoTimerStore(db["running_timers"])

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """Convert database document to TimeEntry model."""
        return TimeEntry(
            _id=str(doc["_id"]),
            task_id=doc["task_id"],
            user_id=doc["user_id"],
            minutes=doc["minutes"],
            description=doc.get("description"),
            started_at=doc.get("started_at"),
            ended_at=doc.get("ended_at"),
            created_at=doc["created_at"],
        )

    def _calculate_minutes(self, started_at: datetime, ended_at: datetime) -> int:
        """
        Wall-clock minutes between two timestamps, rounded half-up.

        Args:
            started_at: Start time
            ended_at: End time

        Returns:
            Whole minutes (may be below the storage minimum)
        """
        seconds = (ended_at - started_at).total_seconds()
        return math.floor(seconds / 60 + 0.5)

    async def _get_task_doc(self, task_id: str) -> dict:
        task = await self.tasks.find_one({"_id": parse_object_id(task_id, "task")})
        if not task:
            raise ValueError("Task not found")
        return task

    async def insert_entry(
        self,
        user_id: str,
        task_id: str,
        minutes: float,
        description: Optional[str] = None,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Write one time entry, enforcing the one-minute minimum.

        Authorization is the caller's job; this is the single writer every
        entry goes through.

        Args:
            user_id: User who tracked the time
            task_id: Task the time is tracked against
            minutes: Duration in minutes (below 1 is stored as 1)
            description: Optional description
            started_at: Optional start timestamp
            ended_at: Optional end timestamp

        Returns:
            Created time entry
        """
        if not math.isfinite(minutes):
            raise DurationValidationError("Time must be a finite number of minutes")
        minutes = max(MINIMUM_ENTRY_MINUTES, math.floor(minutes + 0.5))

        entry_doc = {
            "task_id": task_id,
            "user_id": user_id,
            "minutes": minutes,
            "description": description or None,
            "started_at": to_naive_utc(started_at) if started_at else None,
            "ended_at": to_naive_utc(ended_at) if ended_at else None,
            "created_at": utcnow(),
        }

        result = await self.time_entries.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id

        return self._doc_to_entry(entry_doc)

    async def add_manual_entry(
        self,
        user_id: str,
        entry_create: TimeEntryCreate,
    ) -> TimeEntry:
        """
        Record time typed in by the user.

        Args:
            user_id: User ID
            entry_create: Time entry creation data

        Returns:
            Created time entry

        Raises:
            DurationValidationError: If minutes is not a usable duration
            ValueError: If the task doesn't exist
            NotAuthorizedError: If the user isn't the task's assignee
        """
        normalize_minutes(entry_create.minutes)

        task = await self._get_task_doc(entry_create.task_id)
        ensure_can_mutate_time(user_id, task=task)

        return await self.insert_entry(
            user_id=user_id,
            task_id=entry_create.task_id,
            minutes=entry_create.minutes,
            description=entry_create.description,
            started_at=entry_create.started_at,
            ended_at=entry_create.ended_at,
        )

    async def start_timer(
        self,
        user_id: str,
        task_id: str,
        started_at: Optional[datetime] = None,
    ) -> RunningTimer:
        """
        Start a timer on a task.

        Args:
            user_id: User ID
            task_id: Task ID
            started_at: Optional start time (defaults to now)

        Returns:
            The running timer

        Raises:
            ValueError: If the task doesn't exist or its timer is already running
            NotAuthorizedError: If the user isn't the task's assignee
        """
        task = await self._get_task_doc(task_id)
        ensure_can_mutate_time(user_id, task=task)

        if await self.timer_store.get(user_id, task_id) is not None:
            raise ValueError("Timer already running")

        started_at = to_naive_utc(started_at) if started_at else utcnow()
        if not await self.timer_store.set(user_id, task_id, started_at):
            raise ValueError("Timer already running")

        return RunningTimer(task_id=task_id, started_at=started_at, elapsed_seconds=0)

    async def stop_timer(
        self,
        user_id: str,
        task_id: str,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Stop a timer and record the elapsed time.

        The duration comes from the start and end timestamps only.

        Args:
            user_id: User ID
            task_id: Task ID
            started_at: Start time kept by the client (defaults to the stored one)
            ended_at: Optional end time (defaults to now)

        Returns:
            Created time entry with started_at and ended_at

        Raises:
            ValueError: If the task doesn't exist or no timer is running
            NotAuthorizedError: If the user isn't the task's assignee
        """
        task = await self._get_task_doc(task_id)
        ensure_can_mutate_time(user_id, task=task)

        stored_start = await self.timer_store.get(user_id, task_id)
        started_at = to_naive_utc(started_at) if started_at else stored_start
        if started_at is None:
            raise ValueError("No timer running")

        ended_at = to_naive_utc(ended_at) if ended_at else utcnow()
        minutes = self._calculate_minutes(started_at, ended_at)

        entry = await self.insert_entry(
            user_id=user_id,
            task_id=task_id,
            minutes=minutes,
            started_at=started_at,
            ended_at=ended_at,
        )

        if stored_start is not None:
            await self.timer_store.remove(user_id, task_id)

        return entry

    async def list_running_timers(self, user_id: str) -> list[RunningTimer]:
        """
        List the user's running timers with their elapsed time so far.

        Args:
            user_id: User ID

        Returns:
            Running timers, oldest first
        """
        now = utcnow()
        timers = await self.timer_store.list(user_id)
        return [
            RunningTimer(
                task_id=task_id,
                started_at=started_at,
                elapsed_seconds=max(0, int((now - started_at).total_seconds())),
            )
            for task_id, started_at in timers.items()
        ]

    async def list_user_entries(self, user_id: str) -> list[TimeEntry]:
        """
        List every time entry of a user, oldest first.

        Args:
            user_id: User ID

        Returns:
            List of time entries
        """
        cursor = self.time_entries.find({"user_id": user_id}).sort("created_at", 1)
        entry_docs = await cursor.to_list(length=None)
        return [self._doc_to_entry(doc) for doc in entry_docs]

    async def list_task_entries(self, task_id: str) -> list[TimeEntryWithUser]:
        """
        List the time entries of a task, newest first, with their authors.

        Args:
            task_id: Task ID

        Returns:
            List of time entries
        """
        cursor = self.time_entries.find({"task_id": task_id}).sort("created_at", -1)
        entry_docs = await cursor.to_list(length=None)

        summaries = await self.profile_service.get_summaries(
            {doc["user_id"] for doc in entry_docs}
        )
        return [
            TimeEntryWithUser(
                **self._doc_to_entry(doc).model_dump(by_alias=True),
                user=summaries.get(doc["user_id"]),
            )
            for doc in entry_docs
        ]

    async def delete_entry(
        self,
        user_id: str,
        entry_id: str,
    ) -> dict:
        """
        Delete a time entry.

        Args:
            user_id: User ID
            entry_id: Time entry ID

        Returns:
            Dictionary with deleted_count

        Raises:
            ValueError: If entry not found
            NotAuthorizedError: If the entry belongs to another user
        """
        object_id = parse_object_id(entry_id, "entry")

        existing = await self.time_entries.find_one({"_id": object_id})
        if not existing:
            raise ValueError("Time entry not found")

        ensure_can_mutate_time(user_id, entry=existing)

        # Hard delete for time entries
        result = await self.time_entries.delete_one({"_id": object_id})

        return {"deleted_count": result.deleted_count}
