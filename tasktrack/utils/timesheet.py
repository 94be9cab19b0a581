"""Timesheet aggregation and cell-edit planning.

Everything here is pure: the services fetch entries and tasks, hand them to
these functions, and carry out the resulting plans against the database.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from tasktrack.exceptions import DurationValidationError
from tasktrack.models.task import Task
from tasktrack.models.time_entry import TimeEntry
from tasktrack.models.timesheet import TimesheetReport, TimesheetTaskRow

_DURATION_PATTERN = re.compile(r"^(\d+)(?::(\d{1,2}))?$")

# One timesheet cell covers one day.
MAX_DURATION_MINUTES = 24 * 60


def effective_date(entry: TimeEntry) -> str:
    """
    Get the calendar day a time entry counts towards.

    Uses ``started_at`` when the entry has one, otherwise ``created_at``.
    Timezone-aware timestamps are converted to UTC first; naive ones are
    already UTC.

    Args:
        entry: Time entry

    Returns:
        Date string in "YYYY-MM-DD" form
    """
    moment = entry.started_at or entry.created_at
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


def _title_sort_key(title: str) -> tuple[str, str]:
    # Case-insensitive first, lowercase ahead of uppercase on exact ties.
    return (title.casefold(), title.swapcase())


def aggregate_timesheet(
    entries: Iterable[TimeEntry],
    tasks: Iterable[Task],
    start_date: str,
    end_date: str,
) -> TimesheetReport:
    """
    Build a per-task, per-day timesheet for an inclusive date range.

    Every task in ``tasks`` gets a row, even with no time in range. Minutes
    of entries whose task is not in ``tasks`` (reassigned or deleted since)
    still count towards the daily totals and the week total.

    Args:
        entries: All time entries of the user, unfiltered by date
        tasks: Tasks currently assigned to the user
        start_date: First day of the range ("YYYY-MM-DD")
        end_date: Last day of the range ("YYYY-MM-DD")

    Returns:
        Timesheet report with rows sorted by total minutes, then title

    Example:
        >>> aggregate_timesheet([], [], "2024-01-01", "2024-01-07").week_total
        0
    """
    rows: dict[str, TimesheetTaskRow] = {}
    for task in tasks:
        rows[task.id] = TimesheetTaskRow(
            task_id=task.id,
            task_title=task.title,
            task_status=task.status,
            assignee_id=task.assignee_id,
            daily_time={},
            total_minutes=0,
        )

    daily_totals: dict[str, int] = {}
    for entry in entries:
        day = effective_date(entry)
        if day < start_date or day > end_date:
            continue

        row = rows.get(entry.task_id)
        if row is not None:
            row.daily_time[day] = row.daily_time.get(day, 0) + entry.minutes
            row.total_minutes += entry.minutes

        daily_totals[day] = daily_totals.get(day, 0) + entry.minutes

    for row in rows.values():
        row.cell_values = {day: format_duration(m) for day, m in row.daily_time.items()}

    sorted_rows = sorted(
        rows.values(),
        key=lambda row: (-row.total_minutes, *_title_sort_key(row.task_title)),
    )

    week_total = sum(daily_totals.values())
    return TimesheetReport(
        tasks=sorted_rows,
        daily_totals=daily_totals,
        week_total=week_total,
        week_total_display=format_minutes(week_total),
    )


def normalize_minutes(minutes: float) -> int:
    """
    Round a requested duration to whole minutes for storage.

    Zero stays zero, anything positive is rounded half-up and never drops
    below one minute.

    Raises:
        DurationValidationError: If minutes is negative, not finite or
            more than a day

    Examples:
        >>> normalize_minutes(0)
        0
        >>> normalize_minutes(0.5)
        1
        >>> normalize_minutes(89.5)
        90
    """
    if not math.isfinite(minutes):
        raise DurationValidationError("Time must be a finite number of minutes")
    if minutes < 0:
        raise DurationValidationError("Time cannot be negative")
    if minutes > MAX_DURATION_MINUTES:
        raise DurationValidationError("Time cannot exceed 24:00")
    if minutes == 0:
        return 0
    return max(1, math.floor(minutes + 0.5))


def parse_duration(value: str) -> int:
    """
    Parse a timesheet cell value into minutes.

    Accepts "H:MM", plain hours ("2"), or an empty string for zero.

    Raises:
        DurationValidationError: If the value is negative, malformed or
            more than 24:00

    Examples:
        >>> parse_duration("1:30")
        90
        >>> parse_duration("2")
        120
        >>> parse_duration("")
        0
    """
    text = value.strip()
    if not text:
        return 0
    if text.startswith("-"):
        raise DurationValidationError("Time cannot be negative")

    match = _DURATION_PATTERN.match(text)
    if not match:
        raise DurationValidationError(f"Invalid duration '{value}', expected H:MM")

    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if minutes >= 60:
        raise DurationValidationError(f"Invalid duration '{value}', minutes must be below 60")

    total = hours * 60 + minutes
    if total > MAX_DURATION_MINUTES:
        raise DurationValidationError("Time cannot exceed 24:00")
    return total


def format_duration(minutes: int) -> str:
    """Render minutes as the editable "H:MM" cell value ("" for zero)."""
    if minutes <= 0:
        return ""
    return f"{minutes // 60}:{minutes % 60:02d}"


def format_minutes(minutes: int) -> str:
    """
    Render minutes for display.

    Examples:
        >>> format_minutes(0)
        '0h'
        >>> format_minutes(125)
        '2h 5m'
    """
    if minutes == 0:
        return "0h"
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def week_bounds(day: date) -> tuple[date, date]:
    """Return the Sunday and Saturday of the week containing ``day``."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def day_start(day: str) -> datetime:
    """Midnight UTC (naive) of a "YYYY-MM-DD" day, used to attribute synthetic entries."""
    return datetime.combine(date.fromisoformat(day), datetime.min.time())


def adjustment_description(day: str) -> str:
    """Description given to entries created by editing a timesheet cell."""
    return f"Timesheet entry for {day}"


@dataclass
class CellEditPlan:
    """Database operations needed to set one cell to a new value."""

    delete_ids: list[str] = field(default_factory=list)
    insert_minutes: Optional[int] = None

    @property
    def is_noop(self) -> bool:
        return not self.delete_ids and self.insert_minutes is None


def entries_for_day(entries: Iterable[TimeEntry], task_id: str, day: str) -> list[TimeEntry]:
    """Select the entries of a task whose effective date is ``day``."""
    return [
        entry
        for entry in entries
        if entry.task_id == task_id and effective_date(entry) == day
    ]


def plan_cell_edit(
    current_minutes: int,
    target_minutes: float,
    day_entries: Iterable[TimeEntry],
) -> CellEditPlan:
    """
    Work out how to bring a cell from its current value to a target.

    An increase is recorded as one extra entry for the difference. A
    decrease deletes every entry of the day and, unless the target is zero,
    records the target as a single entry.

    Args:
        current_minutes: Minutes currently shown in the cell
        target_minutes: Requested minutes (fractions allowed)
        day_entries: Entries currently making up the cell

    Returns:
        Plan of deletions and at most one insertion

    Raises:
        DurationValidationError: If target_minutes is negative
    """
    target = normalize_minutes(target_minutes)
    difference = target - current_minutes

    if difference == 0:
        return CellEditPlan()

    if difference > 0:
        return CellEditPlan(insert_minutes=difference)

    return CellEditPlan(
        delete_ids=[entry.id for entry in day_entries],
        insert_minutes=target if target > 0 else None,
    )
