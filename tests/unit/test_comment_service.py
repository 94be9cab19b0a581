"""Tests for CommentService and attachment validation."""
import pytest
from datetime import datetime
from unittest.mock import MagicMock
from bson import ObjectId

from conftest import make_cursor


@pytest.mark.asyncio
class TestAddComment:
    """Tests for add_comment."""

    async def test_add_comment(self, mock_db, collections):
        """Comments are stored trimmed, with the author's profile attached."""
        from tasktrack.models.comment import Attachment, CommentCreate
        from tasktrack.services.comment_service import CommentService

        service = CommentService(mock_db)
        collections["task_comments"].insert_one.return_value = MagicMock(inserted_id=ObjectId())
        collections["profiles"].find.return_value = make_cursor(
            [{"user_id": "user123", "full_name": "Dana"}]
        )

        comment = await service.add_comment(
            "user123",
            "task1",
            CommentCreate(
                content="  First draft attached  ",
                attachments=[Attachment(url="https://files/a.png", name="a.png", type="image/png", size=2048)],
            ),
        )

        assert comment.content == "First draft attached"
        assert comment.user.full_name == "Dana"
        assert comment.attachments[0].name == "a.png"
        stored = collections["task_comments"].insert_one.call_args[0][0]
        assert stored["attachments"][0]["size"] == 2048

    async def test_empty_comment_rejected(self, mock_db, collections):
        from tasktrack.models.comment import CommentCreate
        from tasktrack.services.comment_service import CommentService

        service = CommentService(mock_db)

        with pytest.raises(ValueError, match="Comment cannot be empty"):
            await service.add_comment("user123", "task1", CommentCreate(content="   "))

        collections["task_comments"].insert_one.assert_not_called()

    async def test_bad_attachment_rejected(self, mock_db, collections):
        from tasktrack.models.comment import Attachment, CommentCreate
        from tasktrack.services.comment_service import CommentService

        service = CommentService(mock_db)

        with pytest.raises(ValueError, match="File type not allowed"):
            await service.add_comment(
                "user123",
                "task1",
                CommentCreate(
                    content="Binary",
                    attachments=[Attachment(url="u", name="setup.exe", type="application/x-msdownload", size=10)],
                ),
            )

        collections["task_comments"].insert_one.assert_not_called()

    async def test_list_comments_oldest_first(self, mock_db, collections):
        from tasktrack.services.comment_service import CommentService

        service = CommentService(mock_db)
        docs = [
            {"_id": ObjectId(), "task_id": "task1", "user_id": "a", "content": "one", "created_at": datetime(2024, 1, 1)},
            {"_id": ObjectId(), "task_id": "task1", "user_id": "b", "content": "two", "created_at": datetime(2024, 1, 2)},
        ]
        cursor = make_cursor(docs)
        collections["task_comments"].find.return_value = cursor

        comments = await service.list_comments("task1")

        assert [c.content for c in comments] == ["one", "two"]
        cursor.sort.assert_called_once_with("created_at", 1)
        assert comments[0].user is None

    async def test_count_comments_by_task(self, mock_db, collections):
        """Counts for several tasks come from one grouped query."""
        from tasktrack.services.comment_service import CommentService

        service = CommentService(mock_db)
        collections["task_comments"].aggregate.return_value = make_cursor(
            [{"_id": "task1", "count": 3}]
        )

        counts = await service.count_comments_by_task(["task1", "task2"])

        assert counts == {"task1": 3}
        pipeline = collections["task_comments"].aggregate.call_args[0][0]
        assert pipeline[1] == {"$group": {"_id": "$task_id", "count": {"$sum": 1}}}


class TestValidateAttachment:
    """Tests for validate_attachment."""

    def test_allowed_mime_type(self):
        from tasktrack.models.comment import Attachment
        from tasktrack.utils.attachments import validate_attachment

        validate_attachment(Attachment(url="u", name="notes", type="application/pdf", size=100))

    def test_allowed_extension_with_unknown_type(self):
        """A known extension is enough when the MIME type isn't recognised."""
        from tasktrack.models.comment import Attachment
        from tasktrack.utils.attachments import validate_attachment

        validate_attachment(Attachment(url="u", name="archive.RAR", type="application/octet-stream", size=100))

    def test_empty_type_accepted(self):
        from tasktrack.models.comment import Attachment
        from tasktrack.utils.attachments import validate_attachment

        validate_attachment(Attachment(url="u", name="mystery", type="", size=100))

    def test_too_large(self):
        from tasktrack.models.comment import Attachment
        from tasktrack.utils.attachments import validate_attachment

        with pytest.raises(ValueError, match="less than 10MB"):
            validate_attachment(Attachment(url="u", name="big.png", type="image/png", size=10 * 1024 * 1024 + 1))

    def test_disallowed_type_and_extension(self):
        from tasktrack.models.comment import Attachment
        from tasktrack.utils.attachments import validate_attachment

        with pytest.raises(ValueError, match=r'extension: "\.exe"'):
            validate_attachment(Attachment(url="u", name="run.exe", type="application/x-msdownload", size=1))

    def test_file_extension(self):
        from tasktrack.utils.attachments import file_extension

        assert file_extension("Report.Final.DOCX") == "docx"
        assert file_extension("README") == ""
