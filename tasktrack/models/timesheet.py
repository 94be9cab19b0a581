"""Timesheet report and edit model definitions."""
import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from tasktrack.models.task import TaskStatus


class TimesheetTaskRow(BaseModel):
    """Minutes tracked on one task, per day, within the report range."""

    task_id: str
    task_title: str
    task_status: TaskStatus
    assignee_id: Optional[str] = None
    daily_time: dict[str, int] = {}  # "YYYY-MM-DD" -> minutes
    total_minutes: int = 0
    cell_values: dict[str, str] = {}  # "YYYY-MM-DD" -> "H:MM" as shown in the grid


class TimesheetReport(BaseModel):
    """Aggregated timesheet for a date range."""

    tasks: list[TimesheetTaskRow] = []
    daily_totals: dict[str, int] = {}
    week_total: int = 0
    week_total_display: str = "0h"


class CellEdit(BaseModel):
    """New value for one (task, day) cell.

    Exactly one of ``value`` ("H:MM" as typed in the grid) and ``minutes``
    must be given. ``current_minutes`` is the value the cell showed in the
    last loaded report, when the client has one.
    """

    task_id: str
    date: dt.date
    value: Optional[str] = None
    minutes: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    current_minutes: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _one_duration(self):
        if (self.value is None) == (self.minutes is None):
            raise ValueError("Provide exactly one of 'value' or 'minutes'")
        return self


class AccountDate(BaseModel):
    """Earliest date the timesheet can navigate back to."""

    account_date: dt.datetime
