"""Timesheet service - loading reports and editing cells."""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from pymongo.errors import PyMongoError

from tasktrack.database import parse_object_id
from tasktrack.exceptions import ReconciliationError
from tasktrack.models.timesheet import TimesheetReport
from tasktrack.services.task_service import TaskService
from tasktrack.services.time_service import TimeService
from tasktrack.utils.clock import utcnow
from tasktrack.utils.permissions import ensure_can_mutate_time
from tasktrack.utils.timesheet import (
    CellEditPlan,
    adjustment_description,
    aggregate_timesheet,
    day_start,
    entries_for_day,
    normalize_minutes,
    plan_cell_edit,
)

logger = logging.getLogger(__name__)


class TimesheetService:
    """Service for timesheet reports and cell reconciliation."""

    def __init__(self, db, time_service: Optional[TimeService] = None):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]
        self.profiles = db["profiles"]
        self.time_service = time_service or TimeService(db)
        self.task_service = TaskService(db)

    async def get_report(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> TimesheetReport:
        """
        Build the user's timesheet for an inclusive date range.

        Args:
            user_id: User ID
            start_date: First day of the range
            end_date: Last day of the range

        Returns:
            Aggregated timesheet report

        Raises:
            ValueError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValueError("start_date must not be after end_date")

        entries = await self.time_service.list_user_entries(user_id)
        tasks = await self.task_service.list_assigned_tasks(user_id)
        return aggregate_timesheet(
            entries, tasks, start_date.isoformat(), end_date.isoformat()
        )

    async def _authorize_cell(self, user_id: str, task_id: str) -> None:
        task = await self.task_service.tasks.find_one({"_id": parse_object_id(task_id, "task")})
        if not task:
            raise ValueError("Task not found")
        ensure_can_mutate_time(user_id, task=task)

    async def _apply_plan(
        self,
        user_id: str,
        task_id: str,
        day: str,
        plan: CellEditPlan,
    ) -> None:
        """
        Carry out a cell plan, deletions first, stopping at the first failure.

        Raises:
            PyMongoError: If a deletion or the insertion fails
        """
        deleted: list[str] = []
        for entry_id in plan.delete_ids:
            try:
                await self.time_service.delete_entry(user_id, entry_id)
            except PyMongoError:
                logger.error(
                    "Timesheet edit of task %s on %s for user %s stopped after deleting %s; "
                    "not deleted: %s; not inserted: %s minutes",
                    task_id,
                    day,
                    user_id,
                    deleted,
                    plan.delete_ids[len(deleted):],
                    plan.insert_minutes,
                )
                raise
            deleted.append(entry_id)

        if plan.insert_minutes is None:
            return

        try:
            await self.time_service.insert_entry(
                user_id=user_id,
                task_id=task_id,
                minutes=plan.insert_minutes,
                description=adjustment_description(day),
                started_at=day_start(day),
            )
        except PyMongoError:
            logger.error(
                "Timesheet edit of task %s on %s for user %s deleted %s but failed to insert %s minutes",
                task_id,
                day,
                user_id,
                deleted,
                plan.insert_minutes,
            )
            raise

    async def _report_after_failure(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> Optional[TimesheetReport]:
        # Best effort: the database may still be unavailable.
        try:
            return await self.get_report(user_id, start_date, end_date)
        except PyMongoError:
            logger.exception("Could not reload timesheet for user %s after failed edit", user_id)
            return None

    async def edit_cell(
        self,
        user_id: str,
        task_id: str,
        day: date,
        target_minutes: float,
        start_date: date,
        end_date: date,
        current_minutes: Optional[int] = None,
    ) -> TimesheetReport:
        """
        Set the time tracked on one task for one day.

        ``current_minutes`` is the cell value from the report the client last
        loaded. Without it the value is read fresh from the database, so
        repeating an edit that failed part way through finishes the job.
        Entries are only read when the value is unknown or being lowered.

        Args:
            user_id: User ID
            task_id: Task ID
            day: Day of the cell
            target_minutes: New cell value in minutes
            start_date: First day of the report to return
            end_date: Last day of the report to return
            current_minutes: Cell value as last shown to the user

        Returns:
            Report for [start_date, end_date] after the edit

        Raises:
            DurationValidationError: If target_minutes is negative
            ValueError: If the task doesn't exist
            NotAuthorizedError: If the user isn't the task's assignee
            ReconciliationError: If a database write fails part way through
        """
        target = normalize_minutes(target_minutes)
        day_str = day.isoformat()

        current = current_minutes
        day_entries = []
        if current is None or target < current:
            entries = await self.time_service.list_user_entries(user_id)
            day_entries = entries_for_day(entries, task_id, day_str)
            if current is None:
                current = sum(entry.minutes for entry in day_entries)

        plan = plan_cell_edit(current, target_minutes, day_entries)
        if plan.is_noop:
            return await self.get_report(user_id, start_date, end_date)

        await self._authorize_cell(user_id, task_id)

        try:
            await self._apply_plan(user_id, task_id, day_str, plan)
        except PyMongoError as e:
            report = await self._report_after_failure(user_id, start_date, end_date)
            raise ReconciliationError(f"Timesheet update failed: {e}", report=report) from e

        return await self.get_report(user_id, start_date, end_date)

    async def delete_day(
        self,
        user_id: str,
        task_id: str,
        day: date,
        start_date: date,
        end_date: date,
    ) -> TimesheetReport:
        """
        Delete all of the user's time on a task for one day.

        Args:
            user_id: User ID
            task_id: Task ID
            day: Day to clear
            start_date: First day of the report to return
            end_date: Last day of the report to return

        Returns:
            Report for [start_date, end_date] after the deletion

        Raises:
            NotAuthorizedError: If an entry belongs to another user
            ReconciliationError: If a deletion fails part way through
        """
        day_str = day.isoformat()
        entries = await self.time_service.list_user_entries(user_id)
        plan = CellEditPlan(delete_ids=[e.id for e in entries_for_day(entries, task_id, day_str)])

        try:
            await self._apply_plan(user_id, task_id, day_str, plan)
        except PyMongoError as e:
            report = await self._report_after_failure(user_id, start_date, end_date)
            raise ReconciliationError(f"Deleting time failed: {e}", report=report) from e

        return await self.get_report(user_id, start_date, end_date)

    async def get_account_date(self, user_id: str) -> datetime:
        """
        Earliest date the user's timesheet goes back to.

        Uses the account creation time, then the profile creation time, and
        otherwise one year ago.

        Args:
            user_id: User ID

        Returns:
            Account date
        """
        user = await self.users.find_one({"_id": parse_object_id(user_id, "user")})
        if user and user.get("created_at"):
            return user["created_at"]

        profile = await self.profiles.find_one({"user_id": user_id})
        if profile and profile.get("created_at"):
            return profile["created_at"]

        return utcnow() - timedelta(days=365)
