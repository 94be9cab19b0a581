"""Task service - business logic for task management."""
from datetime import datetime

from pymongo import ReturnDocument

from tasktrack.config import settings
from tasktrack.database import parse_object_id
from tasktrack.models.task import (
    Task,
    TaskCreate,
    TaskDetail,
    TaskStatus,
    TaskWithMetadata,
)
from tasktrack.services.comment_service import CommentService
from tasktrack.services.profile_service import ProfileService
from tasktrack.services.time_service import TimeService
from tasktrack.utils.clock import utcnow
from tasktrack.utils.permissions import ensure_can_update_task


class TaskService:
    """Service for handling task operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.tasks = db["tasks"]
        self.time_entries = db["time_entries"]
        self.profile_service = ProfileService(db)
        self.comment_service = CommentService(db)
        self.time_service = TimeService(db)

    def _doc_to_task(self, doc: dict) -> Task:
        """
        Convert database document to Task model.

        Handles datetime to date conversion for the due date.
        """
        return Task(
            _id=str(doc["_id"]),
            team_id=doc["team_id"],
            title=doc["title"],
            description=doc.get("description"),
            assignee_id=doc.get("assignee_id"),
            creator_id=doc["creator_id"],
            status=doc["status"],
            priority=doc.get("priority"),
            estimated_time_minutes=doc.get("estimated_time_minutes"),
            due_date=doc["due_date"].date() if doc.get("due_date") and isinstance(doc["due_date"], datetime) else doc.get("due_date"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def create_task(
        self,
        creator_id: str,
        task_create: TaskCreate,
    ) -> Task:
        """
        Create a new task in the workspace.

        Args:
            creator_id: User ID of the creator
            task_create: Task creation data

        Returns:
            Created task with status ``todo``
        """
        now = utcnow()
        task_doc = {
            "team_id": settings.workspace_team_id,
            "title": task_create.title,
            "description": task_create.description or None,
            "assignee_id": task_create.assignee_id,
            "creator_id": creator_id,
            "status": TaskStatus.TODO.value,
            "estimated_time_minutes": task_create.estimated_time_minutes or None,
            "priority": task_create.priority.value if task_create.priority else None,
            "due_date": None,
            "created_at": now,
            "updated_at": now,
        }

        # Dates are stored as datetimes
        if task_create.due_date:
            task_doc["due_date"] = datetime.combine(task_create.due_date, datetime.min.time())

        result = await self.tasks.insert_one(task_doc)
        task_doc["_id"] = result.inserted_id

        return self._doc_to_task(task_doc)

    async def list_assigned_tasks(self, user_id: str) -> list[Task]:
        """
        List tasks assigned to a user, newest first.

        Args:
            user_id: Assignee's user ID

        Returns:
            List of tasks
        """
        cursor = self.tasks.find({"assignee_id": user_id}).sort("created_at", -1)
        task_docs = await cursor.to_list(length=None)
        return [self._doc_to_task(doc) for doc in task_docs]

    async def list_assigned_tasks_with_metadata(self, user_id: str) -> list[TaskWithMetadata]:
        """
        List a user's tasks with tracked time and comment counts.

        Args:
            user_id: Assignee's user ID

        Returns:
            Tasks for the board and list views
        """
        tasks = await self.list_assigned_tasks(user_id)
        if not tasks:
            return []

        task_ids = [task.id for task in tasks]
        pipeline = [
            {"$match": {"task_id": {"$in": task_ids}}},
            {"$group": {"_id": "$task_id", "total": {"$sum": "$minutes"}}},
        ]
        cursor = self.time_entries.aggregate(pipeline)
        totals = {doc["_id"]: doc["total"] for doc in await cursor.to_list(length=None)}
        comment_counts = await self.comment_service.count_comments_by_task(task_ids)

        result = []
        for task in tasks:
            result.append(TaskWithMetadata(
                **task.model_dump(by_alias=True),
                total_tracked_minutes=totals.get(task.id, 0),
                comment_count=comment_counts.get(task.id, 0),
            ))
        return result

    async def get_task(self, task_id: str) -> Task:
        """
        Get a task by ID.

        Raises:
            ValueError: If task not found or invalid ID format
        """
        task_doc = await self.tasks.find_one({"_id": parse_object_id(task_id, "task")})
        if not task_doc:
            raise ValueError("Task not found")
        return self._doc_to_task(task_doc)

    async def update_task_status(
        self,
        user_id: str,
        task_id: str,
        status: TaskStatus,
    ) -> Task:
        """
        Move a task to another board column.

        Args:
            user_id: Acting user ID
            task_id: Task ID
            status: New status

        Returns:
            Updated task

        Raises:
            ValueError: If task not found
            NotAuthorizedError: If the user is neither assignee nor creator
        """
        object_id = parse_object_id(task_id, "task")

        existing = await self.tasks.find_one({"_id": object_id})
        if not existing:
            raise ValueError("Task not found")

        ensure_can_update_task(user_id, existing)

        updated_doc = await self.tasks.find_one_and_update(
            {"_id": object_id},
            {"$set": {"status": status.value, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

        return self._doc_to_task(updated_doc)

    async def get_task_details(self, task_id: str) -> TaskDetail:
        """
        Get a task with its people, time entries and comments.

        Args:
            task_id: Task ID

        Returns:
            Task details

        Raises:
            ValueError: If task not found
        """
        task = await self.get_task(task_id)

        people = {user_id for user_id in (task.assignee_id, task.creator_id) if user_id}
        summaries = await self.profile_service.get_summaries(people)

        return TaskDetail(
            **task.model_dump(by_alias=True),
            assignee=summaries.get(task.assignee_id) if task.assignee_id else None,
            creator=summaries.get(task.creator_id),
            time_entries=await self.time_service.list_task_entries(task.id),
            comments=await self.comment_service.list_comments(task.id),
        )
