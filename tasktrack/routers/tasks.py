"""Task router - API endpoints for tasks and their comments."""
from fastapi import APIRouter, Depends, HTTPException, status

from tasktrack.database import get_database
from tasktrack.exceptions import NotAuthorizedError
from tasktrack.models.comment import Comment, CommentCreate
from tasktrack.models.task import Task, TaskCreate, TaskDetail, TaskStatusUpdate, TaskWithMetadata
from tasktrack.routers.auth import get_current_user_id
from tasktrack.services.comment_service import CommentService
from tasktrack.services.task_service import TaskService


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create a task in the workspace.

    - Requires authentication
    - The current user becomes the creator
    - New tasks start in ``todo``
    """
    service = TaskService(db)
    return await service.create_task(creator_id=user_id, task_create=task)


@router.get("", response_model=list[TaskWithMetadata])
async def list_tasks(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List tasks assigned to the current user, newest first.

    Each task carries its total tracked minutes and comment count.
    """
    service = TaskService(db)
    return await service.list_assigned_tasks_with_metadata(user_id)


@router.get("/{task_id}", response_model=TaskDetail)
async def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a task with its assignee, creator, time entries and comments.

    Raises:
        HTTPException: If task not found (404)
    """
    service = TaskService(db)

    try:
        return await service.get_task_details(task_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.patch("/{task_id}/status", response_model=Task)
async def update_task_status(
    task_id: str,
    status_update: TaskStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Move a task to another board column.

    - Only the assignee or the creator may do this

    Raises:
        HTTPException: Not authorized (403) or task not found (404)
    """
    service = TaskService(db)

    try:
        return await service.update_task_status(
            user_id=user_id,
            task_id=task_id,
            status=status_update.status,
        )
    except NotAuthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.get("/{task_id}/comments", response_model=list[Comment])
async def list_comments(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """List a task's comments, oldest first."""
    service = CommentService(db)
    return await service.list_comments(task_id)


@router.post("/{task_id}/comments", response_model=Comment, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: str,
    comment: CommentCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Comment on a task.

    Raises:
        HTTPException: Empty comment or rejected attachment (400),
            task not found (404)
    """
    task_service = TaskService(db)
    try:
        await task_service.get_task(task_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    service = CommentService(db)
    try:
        return await service.add_comment(
            user_id=user_id,
            task_id=task_id,
            comment_create=comment,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
