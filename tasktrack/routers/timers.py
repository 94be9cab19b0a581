"""Timer endpoints - live time tracking."""
from fastapi import APIRouter, Depends, HTTPException, status

from tasktrack.database import get_database
from tasktrack.exceptions import NotAuthorizedError
from tasktrack.models.time_entry import RunningTimer, TimeEntry, TimerStart, TimerStop
from tasktrack.routers.auth import get_current_user_id
from tasktrack.services.time_service import TimeService


router = APIRouter(prefix="/timers", tags=["timers"])


@router.post("/start", response_model=RunningTimer)
async def start_timer(
    timer_start: TimerStart,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Start a timer on a task.

    - Requires authentication
    - Only the task's assignee may track time
    - One running timer per task
    """
    service = TimeService(db)
    try:
        return await service.start_timer(
            user_id=user_id,
            task_id=timer_start.task_id,
            started_at=timer_start.started_at,
        )
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/stop", response_model=TimeEntry)
async def stop_timer(
    timer_stop: TimerStop,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Stop a task's timer and record the elapsed time.

    - Requires authentication
    - Minutes come from the start and end timestamps, at least one minute
    """
    service = TimeService(db)
    try:
        return await service.stop_timer(
            user_id=user_id,
            task_id=timer_stop.task_id,
            started_at=timer_stop.started_at,
        )
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[RunningTimer])
async def list_running_timers(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List the current user's running timers.

    - Elapsed seconds are computed from the stored start time
    """
    service = TimeService(db)
    return await service.list_running_timers(user_id)
