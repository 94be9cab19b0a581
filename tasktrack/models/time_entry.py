"""Time entry model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tasktrack.models.user import ProfileSummary


class TimeEntryCreate(BaseModel):
    """Manual time entry creation model."""

    task_id: str
    minutes: float = Field(ge=0, allow_inf_nan=False)
    description: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


class TimeEntry(BaseModel):
    """Full time entry model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    task_id: str
    user_id: str
    minutes: int
    description: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"populate_by_name": True}


class TimeEntryWithUser(TimeEntry):
    """Time entry with the author's profile."""

    user: Optional[ProfileSummary] = None


class TimerStart(BaseModel):
    """Request model for starting a timer."""

    task_id: str
    started_at: Optional[datetime] = None


class TimerStop(BaseModel):
    """Request model for stopping a timer.

    ``started_at`` may be sent by a client that kept its own copy of the
    start time; otherwise the stored one is used.
    """

    task_id: str
    started_at: Optional[datetime] = None


class RunningTimer(BaseModel):
    """A timer that has been started and not yet stopped."""

    task_id: str
    started_at: datetime
    elapsed_seconds: int
