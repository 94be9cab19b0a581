"""Timesheet endpoints - weekly report and cell editing."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tasktrack.database import get_database
from tasktrack.exceptions import NotAuthorizedError, ReconciliationError
from tasktrack.models.timesheet import AccountDate, CellEdit, TimesheetReport
from tasktrack.routers.auth import get_current_user_id
from tasktrack.services.timesheet_service import TimesheetService
from tasktrack.utils.clock import utcnow
from tasktrack.utils.timesheet import parse_duration, week_bounds


router = APIRouter(prefix="/timesheet", tags=["timesheet"])


def _resolve_range(
    anchor: date,
    start_date: Optional[date],
    end_date: Optional[date],
) -> tuple[date, date]:
    """Fill in a missing range with the Sunday-Saturday week around anchor."""
    week_start, week_end = week_bounds(anchor)
    return start_date or week_start, end_date or week_end


def _reconciliation_failed(e: ReconciliationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={
            "message": str(e),
            "report": e.report.model_dump(mode="json") if e.report else None,
        },
    )


@router.get("", response_model=TimesheetReport)
async def get_timesheet(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get the current user's timesheet.

    - Range is inclusive; defaults to the current Sunday-Saturday week
    - Every assigned task is listed, even without time in range
    """
    start_date, end_date = _resolve_range(utcnow().date(), start_date, end_date)

    service = TimesheetService(db)
    try:
        return await service.get_report(user_id, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/cell", response_model=TimesheetReport)
async def edit_cell(
    cell: CellEdit,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Set the time on one task for one day.

    - ``value`` is "H:MM" as typed in the grid; ``minutes`` is a number
    - Returns the report for the range (default: the edited day's week)

    Raises:
        HTTPException: invalid duration or unknown task (400), not the
            assignee (403), database failure part way through (502)
    """
    start_date, end_date = _resolve_range(cell.date, start_date, end_date)

    try:
        target = parse_duration(cell.value) if cell.value is not None else cell.minutes
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    service = TimesheetService(db)
    try:
        return await service.edit_cell(
            user_id=user_id,
            task_id=cell.task_id,
            day=cell.date,
            target_minutes=target,
            start_date=start_date,
            end_date=end_date,
            current_minutes=cell.current_minutes,
        )
    except ReconciliationError as e:
        raise _reconciliation_failed(e)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/cell", response_model=TimesheetReport)
async def delete_day(
    task_id: str = Query(...),
    day: date = Query(..., alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete all of the current user's time on a task for one day.

    Raises:
        HTTPException: Not authorized (403), database failure part way
            through (502)
    """
    start_date, end_date = _resolve_range(day, start_date, end_date)

    service = TimesheetService(db)
    try:
        return await service.delete_day(
            user_id=user_id,
            task_id=task_id,
            day=day,
            start_date=start_date,
            end_date=end_date,
        )
    except ReconciliationError as e:
        raise _reconciliation_failed(e)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/account-date", response_model=AccountDate)
async def get_account_date(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Earliest date the timesheet navigation may go back to."""
    service = TimesheetService(db)
    try:
        return AccountDate(account_date=await service.get_account_date(user_id))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
