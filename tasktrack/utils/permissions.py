"""Authorization checks shared by every task and time-entry mutation."""
import logging
from typing import Optional

from tasktrack.exceptions import NotAuthorizedError

logger = logging.getLogger(__name__)


def can_mutate_time(
    user_id: str,
    task: Optional[dict] = None,
    entry: Optional[dict] = None,
) -> bool:
    """
    Check whether a user may create or remove time records.

    Existing entries may only be touched by the user who recorded them.
    New time may only be tracked by the task's assignee.

    Args:
        user_id: Acting user ID
        task: Task document the time is tracked against
        entry: Existing time entry document, when removing one

    Returns:
        True if the mutation is allowed
    """
    if entry is not None:
        return entry.get("user_id") == user_id
    if task is not None:
        return task.get("assignee_id") == user_id
    return False


def ensure_can_mutate_time(
    user_id: str,
    task: Optional[dict] = None,
    entry: Optional[dict] = None,
) -> None:
    """
    Raise unless ``can_mutate_time`` allows the mutation.

    Raises:
        NotAuthorizedError: If the user may not mutate the time records
    """
    if can_mutate_time(user_id, task=task, entry=entry):
        return

    if entry is not None:
        logger.warning("User %s denied access to time entry %s", user_id, entry.get("_id"))
        raise NotAuthorizedError("Not authorized to delete this time entry")

    logger.warning("User %s denied time tracking on task %s", user_id, (task or {}).get("_id"))
    raise NotAuthorizedError("Not authorized to track time for this task")


def ensure_can_update_task(user_id: str, task: dict) -> None:
    """
    Only the assignee or the creator may change a task.

    Raises:
        NotAuthorizedError: If the user is neither
    """
    if user_id in (task.get("assignee_id"), task.get("creator_id")):
        return
    logger.warning("User %s denied update on task %s", user_id, task.get("_id"))
    raise NotAuthorizedError("Not authorized to update this task")
