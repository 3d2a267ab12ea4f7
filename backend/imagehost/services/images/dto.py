from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from imagehost.models.image import Image


@dataclass(frozen=True, slots=True)
class ImageOut:
    """
    Public projection of an image row.

    :param order: Display position; lower comes first.
    :param bytes: Stored size in bytes.
    """

    id: int
    user_id: int
    title: str
    public_id: str
    url: str
    thumbnail_url: str | None
    format: str
    bytes: int
    width: int | None
    height: int | None
    original_name: str | None
    order: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, image: Image) -> ImageOut:
        return cls(
            id=image.id,
            user_id=image.user_id,
            title=image.title,
            public_id=image.public_id,
            url=image.url,
            thumbnail_url=image.thumbnail_url,
            format=image.format,
            bytes=image.bytes,
            width=image.width,
            height=image.height,
            original_name=image.original_name,
            order=image.order,
            created_at=image.created_at,
            updated_at=image.updated_at,
        )


@dataclass(frozen=True, slots=True)
class ImagePageOut:
    """
    One page of a user's gallery.

    :param total_pages: ``ceil(total / limit)``.
    :param has_more: Whether a later page exists.
    :param page: Effective (clamped) page.
    :param limit: Effective (clamped) page size.
    """

    images: list[ImageOut]
    total: int
    total_pages: int
    has_more: bool
    page: int
    limit: int


@dataclass(frozen=True, slots=True)
class ImageStatsOut:
    total_images: int
    total_size_bytes: int
    total_size_mb: float
    recent_uploads: int


@dataclass(frozen=True, slots=True)
class UploadLimits:
    """Upload policy knobs, read from ``MAX_IMAGE_BYTES``/``MAX_BULK_FILES``."""

    max_bytes: int = 5 * 1024 * 1024
    max_files: int = 100
