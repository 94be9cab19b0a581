"""Time entry endpoints - manual entries and history."""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from tasktrack.database import get_database
from tasktrack.exceptions import NotAuthorizedError
from tasktrack.models.time_entry import TimeEntry, TimeEntryCreate, TimeEntryWithUser
from tasktrack.routers.auth import get_current_user_id
from tasktrack.services.time_service import TimeService


router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.post("", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_create: TimeEntryCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Record time manually.

    - Requires authentication
    - Only the task's assignee may track time
    - Less than one minute is stored as one minute
    """
    service = TimeService(db)
    try:
        return await service.add_manual_entry(
            user_id=user_id,
            entry_create=entry_create,
        )
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[TimeEntryWithUser])
async def list_entries(
    task_id: str = Query(..., description="Task to list entries for"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List a task's time entries, most recent first.

    - Requires authentication
    - Each entry includes the author's profile
    """
    service = TimeService(db)
    return await service.list_task_entries(task_id)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a time entry.

    - Requires authentication
    - User must own the entry
    - Hard delete (permanent)
    """
    service = TimeService(db)
    try:
        return await service.delete_entry(
            user_id=user_id,
            entry_id=entry_id,
        )
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
