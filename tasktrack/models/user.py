"""User, profile and team membership model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ViewMode(str, Enum):
    """Default task view on the dashboard."""

    BOARD = "board"
    LIST = "list"


class UserCreate(BaseModel):
    """Registration payload."""

    email: EmailStr
    name: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    """Login payload."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Bearer token issued on login; ``expires_in`` is in seconds."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class User(BaseModel):
    """User model without password (for API responses)."""

    id: str = Field(alias="_id", serialization_alias="id")
    email: EmailStr
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class ProfileSummary(BaseModel):
    """Author/assignee information embedded in other resources."""

    user_id: str
    full_name: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Profile upsert payload - all fields optional."""

    full_name: Optional[str] = None
    role: Optional[str] = None
    default_view: Optional[ViewMode] = None


class DefaultViewUpdate(BaseModel):
    """Request model for switching the dashboard view."""

    default_view: ViewMode


class Profile(BaseModel):
    """Full profile model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    full_name: Optional[str] = None
    role: Optional[str] = None
    default_view: Optional[ViewMode] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class TeamMember(BaseModel):
    """Member of the workspace team."""

    user_id: str
    role: Optional[str] = None
    profile: Optional[ProfileSummary] = None
