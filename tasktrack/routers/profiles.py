"""Profile router - the current user's profile and the workspace team."""
from fastapi import APIRouter, Depends, HTTPException, status

from tasktrack.database import get_database
from tasktrack.models.user import DefaultViewUpdate, Profile, ProfileUpdate, TeamMember
from tasktrack.routers.auth import get_current_user_id
from tasktrack.services.profile_service import ProfileService


router = APIRouter(tags=["profiles"])


@router.get("/profile", response_model=Profile)
async def get_profile(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get the current user's profile.

    Raises:
        HTTPException: If the user has no profile yet (404)
    """
    service = ProfileService(db)

    try:
        return await service.get_profile(user_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.put("/profile", response_model=Profile)
async def update_profile(
    profile_update: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create or update the current user's profile.

    Completing the profile also makes sure the user is in the workspace team.
    """
    service = ProfileService(db)
    profile = await service.upsert_profile(user_id, profile_update)
    await service.ensure_team_membership(user_id)
    return profile


@router.put("/profile/default-view", response_model=Profile)
async def set_default_view(
    view_update: DefaultViewUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Switch the current user's dashboard between board and list."""
    service = ProfileService(db)
    return await service.set_default_view(user_id, view_update.default_view)


@router.get("/team/members", response_model=list[TeamMember])
async def list_team_members(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """List the workspace team, for choosing assignees."""
    service = ProfileService(db)
    return await service.list_team_members()
