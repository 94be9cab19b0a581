"""Profile service - user profiles and workspace team membership."""
import logging
from typing import Optional

from pymongo import ReturnDocument

from tasktrack.config import settings
from tasktrack.models.user import Profile, ProfileSummary, ProfileUpdate, TeamMember, ViewMode
from tasktrack.utils.clock import utcnow

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for handling profiles and team membership."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.profiles = db["profiles"]
        self.team_members = db["team_members"]

    def _doc_to_profile(self, doc: dict) -> Profile:
        """Convert database document to Profile model."""
        return Profile(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            full_name=doc.get("full_name"),
            role=doc.get("role"),
            default_view=doc.get("default_view") or None,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def get_profile(self, user_id: str) -> Profile:
        """
        Get a user's profile.

        Raises:
            ValueError: If the user has no profile yet
        """
        doc = await self.profiles.find_one({"user_id": user_id})
        if not doc:
            raise ValueError("Profile not found")
        return self._doc_to_profile(doc)

    async def get_summaries(self, user_ids: set[str]) -> dict[str, ProfileSummary]:
        """
        Look up display names for a set of users.

        Args:
            user_ids: User IDs to resolve

        Returns:
            Mapping of user ID to profile summary (users without a profile
            are left out)
        """
        if not user_ids:
            return {}

        cursor = self.profiles.find({"user_id": {"$in": list(user_ids)}})
        docs = await cursor.to_list(length=None)
        return {
            doc["user_id"]: ProfileSummary(user_id=doc["user_id"], full_name=doc.get("full_name"))
            for doc in docs
        }

    async def upsert_profile(
        self,
        user_id: str,
        profile_update: ProfileUpdate,
        full_name: Optional[str] = None,
    ) -> Profile:
        """
        Create or update a user's profile.

        Args:
            user_id: User ID
            profile_update: Fields to set (None leaves a field untouched)
            full_name: Name to use when creating a profile without one

        Returns:
            Stored profile
        """
        now = utcnow()
        update_doc = {"updated_at": now}

        if profile_update.full_name is not None:
            update_doc["full_name"] = profile_update.full_name.strip()
        if profile_update.role is not None:
            update_doc["role"] = profile_update.role.strip() or None
        if profile_update.default_view is not None:
            update_doc["default_view"] = profile_update.default_view.value

        on_insert = {"created_at": now}
        if "full_name" not in update_doc:
            on_insert["full_name"] = full_name

        doc = await self.profiles.find_one_and_update(
            {"user_id": user_id},
            {"$set": update_doc, "$setOnInsert": on_insert},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._doc_to_profile(doc)

    async def set_default_view(self, user_id: str, view: ViewMode) -> Profile:
        """Remember the user's preferred dashboard view."""
        return await self.upsert_profile(user_id, ProfileUpdate(default_view=view))

    async def ensure_team_membership(self, user_id: str) -> None:
        """
        Add the user to the workspace team unless already a member.

        Args:
            user_id: User ID
        """
        query = {"team_id": settings.workspace_team_id, "user_id": user_id}
        result = await self.team_members.update_one(
            query,
            {"$setOnInsert": {"role": "member", "created_at": utcnow()}},
            upsert=True,
        )
        if result.upserted_id is not None:
            logger.info("Added user %s to team %s", user_id, settings.workspace_team_id)

    async def list_team_members(self) -> list[TeamMember]:
        """
        List members of the workspace team with their profiles.

        Falls back to every user with a named profile when the team has no
        members recorded.

        Returns:
            Team members, earliest joined first
        """
        cursor = self.team_members.find({"team_id": settings.workspace_team_id}).sort("created_at", 1)
        member_docs = await cursor.to_list(length=None)

        if member_docs:
            summaries = await self.get_summaries({doc["user_id"] for doc in member_docs})
            return [
                TeamMember(
                    user_id=doc["user_id"],
                    role=doc.get("role"),
                    profile=summaries.get(doc["user_id"]),
                )
                for doc in member_docs
            ]

        cursor = self.profiles.find({"full_name": {"$nin": [None, ""]}})
        profile_docs = await cursor.to_list(length=None)
        return [
            TeamMember(
                user_id=doc["user_id"],
                role=None,
                profile=ProfileSummary(user_id=doc["user_id"], full_name=doc["full_name"]),
            )
            for doc in profile_docs
        ]
