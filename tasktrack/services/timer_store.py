"""Storage for running timers, so a timer survives page reloads and restarts."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pymongo.errors import DuplicateKeyError


class TimerStore(ABC):
    """Key-value store of timer start times, keyed by (user, task)."""

    @abstractmethod
    async def get(self, user_id: str, task_id: str) -> Optional[datetime]:
        """Start time of the user's timer on a task, or None."""

    @abstractmethod
    async def set(self, user_id: str, task_id: str, started_at: datetime) -> bool:
        """Record a start time. Returns False if a timer is already running."""

    @abstractmethod
    async def remove(self, user_id: str, task_id: str) -> None:
        """Forget the user's timer on a task."""

    @abstractmethod
    async def list(self, user_id: str) -> dict[str, datetime]:
        """All of the user's running timers as task ID -> start time."""


class MongoTimerStore(TimerStore):
    """Timer store backed by the ``running_timers`` collection."""

    def __init__(self, collection):
        self.collection = collection

    async def get(self, user_id: str, task_id: str) -> Optional[datetime]:
        doc = await self.collection.find_one({"user_id": user_id, "task_id": task_id})
        return doc["started_at"] if doc else None

    async def set(self, user_id: str, task_id: str, started_at: datetime) -> bool:
        # Unique (user_id, task_id) index rejects a second start.
        try:
            await self.collection.insert_one({
                "user_id": user_id,
                "task_id": task_id,
                "started_at": started_at,
            })
        except DuplicateKeyError:
            return False
        return True

    async def remove(self, user_id: str, task_id: str) -> None:
        await self.collection.delete_one({"user_id": user_id, "task_id": task_id})

    async def list(self, user_id: str) -> dict[str, datetime]:
        cursor = self.collection.find({"user_id": user_id}).sort("started_at", 1)
        docs = await cursor.to_list(length=None)
        return {doc["task_id"]: doc["started_at"] for doc in docs}
