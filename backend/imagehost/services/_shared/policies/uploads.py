"""Upload acceptance rules applied before any storage call."""

from __future__ import annotations

from collections.abc import Sequence

from imagehost.models.image import TITLE_MAX_LENGTH
from imagehost.services._shared.errors import (
    InvalidUploadError,
    TitleCountMismatchError,
    ValidationError,
)
from imagehost.services._shared.ports.object_storage import UploadedBlob

ALLOWED_MIME_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
)
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_FILES = 100


def clean_title(title: str | None) -> str:
    """Trim a title and enforce the 1 to TITLE_MAX_LENGTH character rule.

    :raises ValidationError: Blank or too long.
    """
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return cleaned


def check_blob(blob: UploadedBlob, *, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    """Reject blobs with a disallowed type, no content, or too many bytes.

    :raises InvalidUploadError: With a client-safe reason.
    """
    if (blob.mime_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise InvalidUploadError("Only image files are allowed!")
    if blob.size <= 0:
        raise InvalidUploadError("Uploaded file is empty")
    if blob.size > max_bytes:
        raise InvalidUploadError(f"File exceeds the {max_bytes // (1024 * 1024)} MB limit")


def check_batch(
    blobs: Sequence[UploadedBlob],
    titles: Sequence[str],
    *,
    max_bytes: int = DEFAULT_MAX_BYTES,
    max_files: int = DEFAULT_MAX_FILES,
) -> None:
    """Validate a bulk upload as a whole before the first item is stored."""
    if not blobs:
        raise InvalidUploadError("No files uploaded")
    if len(blobs) > max_files:
        raise InvalidUploadError(f"At most {max_files} files per upload")
    if len(titles) != len(blobs):
        raise TitleCountMismatchError()
    for title in titles:
        if not (title or "").strip():
            raise InvalidUploadError("Every image needs a title")
        clean_title(title)
    for blob in blobs:
        check_blob(blob, max_bytes=max_bytes)
