"""Task model definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from tasktrack.models.comment import Comment
from tasktrack.models.time_entry import TimeEntryWithUser
from tasktrack.models.user import ProfileSummary


class TaskStatus(str, Enum):
    """Board columns a task moves through."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    COMPLETE = "complete"


class TaskPriority(str, Enum):
    """Task priorities."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class TaskCreate(BaseModel):
    """Task creation model."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    assignee_id: str
    estimated_time_minutes: Optional[int] = Field(default=None, ge=0)
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class TaskStatusUpdate(BaseModel):
    """Request model for moving a task to another column."""

    status: TaskStatus


class Task(BaseModel):
    """Full task model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    team_id: str
    title: str
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    creator_id: str
    status: TaskStatus = TaskStatus.TODO
    priority: Optional[TaskPriority] = None
    estimated_time_minutes: Optional[int] = None
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class TaskWithMetadata(Task):
    """Task as listed on the board, with tracked time and comment count."""

    total_tracked_minutes: int = 0
    comment_count: int = 0


class TaskDetail(Task):
    """Task with people, time entries and comments."""

    assignee: Optional[ProfileSummary] = None
    creator: Optional[ProfileSummary] = None
    time_entries: list[TimeEntryWithUser] = []
    comments: list[Comment] = []
