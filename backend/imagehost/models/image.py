"""Image metadata model; the binary lives in object storage."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from imagehost.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

ALLOWED_FORMATS = ("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp")
TITLE_MAX_LENGTH = 100
ORIGINAL_NAME_MAX_LENGTH = 255


class Image(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Metadata row for one stored image.

    Fields
    ------
    user_id : int
        Owner. Every query is scoped by it.
    title : str
        Trimmed, 1 to 100 characters.
    public_id : str
        Opaque object-storage descriptor, used to delete the blob.
    url, thumbnail_url : str
        Delivery URLs returned by the storage gateway.
    format : str
        One of :data:`ALLOWED_FORMATS`.
    bytes : int
        Stored size, at least 1.
    order : int
        Non-negative display position. Duplicates are tolerated; listing
        breaks ties by ``created_at`` then ``id``.
    """

    __tablename__ = "images"
    repr_attrs = ("user_id", "order", "title")

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    public_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    format: Mapped[str] = mapped_column(String(10), nullable=False)
    bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    original_name: Mapped[str | None] = mapped_column(
        String(ORIGINAL_NAME_MAX_LENGTH), nullable=True
    )
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("bytes >= 1", name="bytes_positive"),
        CheckConstraint('"order" >= 0', name="order_non_negative"),
        Index("ix_images_user_id_order", "user_id", "order"),
        Index("ix_images_created_at", "created_at"),
    )

    @validates("title")
    def _normalize_title(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Title is required.")
        v = value.strip()
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters.")
        return v

    @validates("format")
    def _validate_format(self, key: str, value: str) -> str:
        v = (value or "").lower()
        if v not in ALLOWED_FORMATS:
            raise ValueError(f"Unsupported image format: {value!r}")
        return v

    @validates("original_name")
    def _clip_original_name(self, key: str, value: str | None) -> str | None:
        if value is None:
            return None
        return value[:ORIGINAL_NAME_MAX_LENGTH]
