"""Task comment model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tasktrack.models.user import ProfileSummary


class Attachment(BaseModel):
    """Reference to an uploaded file linked from a comment."""

    url: str
    name: str
    type: str = ""
    size: int = Field(ge=0)


class CommentCreate(BaseModel):
    """Comment creation model."""

    content: str
    attachments: list[Attachment] = []


class Comment(BaseModel):
    """Full comment model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    task_id: str
    user_id: str
    content: str
    attachments: list[Attachment] = []
    created_at: datetime
    user: Optional[ProfileSummary] = None

    model_config = {"populate_by_name": True}
