"""Tests for ProfileService."""
import pytest
from datetime import datetime
from unittest.mock import MagicMock
from bson import ObjectId

from conftest import make_cursor


def profile_doc(user_id="user123", **overrides):
    doc = {
        "_id": ObjectId(),
        "user_id": user_id,
        "full_name": "Dana",
        "role": None,
        "default_view": None,
        "created_at": datetime(2024, 1, 1),
        "updated_at": datetime(2024, 1, 1),
    }
    doc.update(overrides)
    return doc


@pytest.mark.asyncio
class TestProfiles:
    """Tests for reading and writing profiles."""

    async def test_get_profile(self, mock_db, collections):
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["profiles"].find_one.return_value = profile_doc(default_view="list")

        profile = await service.get_profile("user123")

        assert profile.full_name == "Dana"
        assert profile.default_view.value == "list"

    async def test_get_profile_missing(self, mock_db, collections):
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["profiles"].find_one.return_value = None

        with pytest.raises(ValueError, match="Profile not found"):
            await service.get_profile("user123")

    async def test_upsert_only_sets_given_fields(self, mock_db, collections):
        """Fields left as None are not overwritten."""
        from tasktrack.models.user import ProfileUpdate
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["profiles"].find_one_and_update.return_value = profile_doc(role="Animator")

        await service.upsert_profile("user123", ProfileUpdate(role=" Animator "))

        query, update = collections["profiles"].find_one_and_update.call_args[0]
        assert query == {"user_id": "user123"}
        assert update["$set"]["role"] == "Animator"
        assert "full_name" not in update["$set"]
        assert "created_at" in update["$setOnInsert"]
        assert collections["profiles"].find_one_and_update.call_args[1]["upsert"] is True

    async def test_set_default_view(self, mock_db, collections):
        from tasktrack.models.user import ViewMode
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["profiles"].find_one_and_update.return_value = profile_doc(default_view="board")

        profile = await service.set_default_view("user123", ViewMode.BOARD)

        assert profile.default_view == ViewMode.BOARD
        update = collections["profiles"].find_one_and_update.call_args[0][1]
        assert update["$set"]["default_view"] == "board"

    async def test_get_summaries_empty_skips_query(self, mock_db, collections):
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)

        assert await service.get_summaries(set()) == {}
        collections["profiles"].find.assert_not_called()


@pytest.mark.asyncio
class TestTeamMembers:
    """Tests for workspace membership."""

    async def test_ensure_membership_is_idempotent_upsert(self, mock_db, collections):
        from tasktrack.config import settings
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["team_members"].update_one.return_value = MagicMock(upserted_id=None)

        await service.ensure_team_membership("user123")

        query, update = collections["team_members"].update_one.call_args[0]
        assert query == {"team_id": settings.workspace_team_id, "user_id": "user123"}
        assert "$setOnInsert" in update
        assert "$set" not in update

    async def test_list_members_with_profiles(self, mock_db, collections):
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["team_members"].find.return_value = make_cursor([
            {"user_id": "a", "role": "lead"},
            {"user_id": "b", "role": "member"},
        ])
        collections["profiles"].find.return_value = make_cursor([
            {"user_id": "a", "full_name": "Ari"},
        ])

        members = await service.list_team_members()

        assert [m.user_id for m in members] == ["a", "b"]
        assert members[0].profile.full_name == "Ari"
        assert members[1].profile is None

    async def test_list_members_falls_back_to_named_profiles(self, mock_db, collections):
        """With no recorded members, every named profile is listed."""
        from tasktrack.services.profile_service import ProfileService

        service = ProfileService(mock_db)
        collections["profiles"].find.return_value = make_cursor([
            {"user_id": "a", "full_name": "Ari"},
        ])

        members = await service.list_team_members()

        assert [m.user_id for m in members] == ["a"]
        assert members[0].role is None
        query = collections["profiles"].find.call_args[0][0]
        assert query == {"full_name": {"$nin": [None, ""]}}
