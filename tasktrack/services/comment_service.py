"""Comment service - discussion threads on tasks."""
from tasktrack.models.comment import Comment, CommentCreate
from tasktrack.services.profile_service import ProfileService
from tasktrack.utils.attachments import validate_attachment
from tasktrack.utils.clock import utcnow


class CommentService:
    """Service for handling task comments."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.comments = db["task_comments"]
        self.profile_service = ProfileService(db)

    def _doc_to_comment(self, doc: dict, user=None) -> Comment:
        """Convert database document to Comment model."""
        return Comment(
            _id=str(doc["_id"]),
            task_id=doc["task_id"],
            user_id=doc["user_id"],
            content=doc["content"],
            attachments=doc.get("attachments", []),
            created_at=doc["created_at"],
            user=user,
        )

    async def add_comment(
        self,
        user_id: str,
        task_id: str,
        comment_create: CommentCreate,
    ) -> Comment:
        """
        Add a comment to a task.

        Args:
            user_id: Author's user ID
            task_id: Task ID
            comment_create: Comment text and attachment references

        Returns:
            Created comment with the author's profile

        Raises:
            ValueError: If the comment is empty or an attachment is rejected
        """
        content = comment_create.content.strip()
        if not content:
            raise ValueError("Comment cannot be empty")

        for attachment in comment_create.attachments:
            validate_attachment(attachment)

        comment_doc = {
            "task_id": task_id,
            "user_id": user_id,
            "content": content,
            "attachments": [a.model_dump() for a in comment_create.attachments],
            "created_at": utcnow(),
        }

        result = await self.comments.insert_one(comment_doc)
        comment_doc["_id"] = result.inserted_id

        summaries = await self.profile_service.get_summaries({user_id})
        return self._doc_to_comment(comment_doc, user=summaries.get(user_id))

    async def list_comments(self, task_id: str) -> list[Comment]:
        """
        List a task's comments, oldest first, with their authors.

        Args:
            task_id: Task ID

        Returns:
            List of comments
        """
        cursor = self.comments.find({"task_id": task_id}).sort("created_at", 1)
        comment_docs = await cursor.to_list(length=None)

        summaries = await self.profile_service.get_summaries(
            {doc["user_id"] for doc in comment_docs}
        )
        return [
            self._doc_to_comment(doc, user=summaries.get(doc["user_id"]))
            for doc in comment_docs
        ]

    async def count_comments_by_task(self, task_ids: list[str]) -> dict[str, int]:
        """Number of comments per task; tasks without comments are omitted."""
        pipeline = [
            {"$match": {"task_id": {"$in": task_ids}}},
            {"$group": {"_id": "$task_id", "count": {"$sum": 1}}},
        ]
        cursor = self.comments.aggregate(pipeline)
        return {doc["_id"]: doc["count"] for doc in await cursor.to_list(length=None)}
