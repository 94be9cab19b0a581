"""Validation of files attached to task comments."""
from tasktrack.config import settings
from tasktrack.models.comment import Attachment

IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/svg+xml",
}

ALLOWED_TYPES = IMAGE_TYPES | {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/zip",
    "application/x-zip-compressed",
    "text/plain",
    "text/csv",
    "text/markdown",
    "application/json",
    "application/xml",
    "text/xml",
}

ALLOWED_EXTENSIONS = {
    "jpg", "jpeg", "png", "gif", "webp", "bmp", "svg",
    "pdf",
    "doc", "docx",
    "xls", "xlsx",
    "ppt", "pptx",
    "txt", "csv", "md",
    "zip", "rar",
    "json", "xml",
}


def file_extension(name: str) -> str:
    """Lower-cased extension of a file name, or "" when it has none."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def validate_attachment(attachment: Attachment) -> None:
    """
    Check an attachment's size and type.

    The type is accepted if either the MIME type or the extension is on the
    allow list. An empty MIME type is accepted too, since browsers do not
    always detect one.

    Args:
        attachment: Attachment metadata

    Raises:
        ValueError: If the file is too large or of a disallowed type
    """
    if attachment.size > settings.attachment_max_bytes:
        limit_mb = settings.attachment_max_bytes // (1024 * 1024)
        raise ValueError(f"File size must be less than {limit_mb}MB")

    extension = file_extension(attachment.name)
    if attachment.type in ALLOWED_TYPES or extension in ALLOWED_EXTENSIONS:
        return
    if attachment.type == "":
        return

    raise ValueError(
        f'File type not allowed. Detected type: "{attachment.type}", '
        f'extension: ".{extension or "none"}"'
    )
