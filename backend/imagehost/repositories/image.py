"""Image store: owner-scoped persistence for image metadata."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, cast

from sqlalchemy import Select, delete, func, select, update

from imagehost.models.image import Image
from imagehost.repositories.base import BaseRepository, clamp, paginate_select

MAX_PAGE_SIZE = 50
RECENT_WINDOW = timedelta(days=7)


@dataclass(frozen=True, slots=True)
class ImageAggregate:
    """Raw per-owner totals; presentation rounding happens in the service."""

    total_images: int
    total_bytes: int
    recent_uploads: int


class ImageRepository(BaseRepository[Image]):
    """Persistence-only repository for :class:`Image`.

    Every read that can reach another user's data takes ``user_id`` and puts
    it in the ``WHERE`` clause. Callers never filter ownership in Python.
    """

    model = Image

    def _updatable_fields(self) -> set[str]:
        return {
            "title",
            "public_id",
            "url",
            "thumbnail_url",
            "format",
            "bytes",
            "width",
            "height",
            "original_name",
            "order",
        }

    @staticmethod
    def _listing_order(stmt: Select[Any]) -> Select[Any]:
        # order ASC, newest first among equal orders, id as the final tie-break
        return stmt.order_by(Image.order.asc(), Image.created_at.desc(), Image.id.desc())

    # ---------------------------- Reads ----------------------------

    def get_owned(self, image_id: int, user_id: int) -> Image | None:
        """Return the image only when it belongs to ``user_id``."""
        stmt = select(Image).where(Image.id == image_id, Image.user_id == user_id)
        return cast(Image | None, self.session.execute(stmt).scalars().first())

    def find_by_owner(
        self, user_id: int, *, page: int = 1, page_size: int = 20
    ) -> tuple[list[Image], int, int, int]:
        """List one page of a user's images in display order.

        :param user_id: Owner whose images are listed.
        :param page: 1-based page, clamped to ``>= 1``.
        :param page_size: Page size, clamped to ``[1, 50]``.
        :returns: ``(images, total, page, page_size)`` with the clamped values.
        """
        page = clamp(page, 1)
        page_size = clamp(page_size, 1, MAX_PAGE_SIZE)
        stmt = self._listing_order(select(Image).where(Image.user_id == user_id))
        items, total = paginate_select(self.session, stmt, page=page, limit=page_size)
        return cast(list[Image], items), total, page, page_size

    def find_highest_order(self, user_id: int) -> Image | None:
        stmt = (
            select(Image)
            .where(Image.user_id == user_id)
            .order_by(Image.order.desc(), Image.id.desc())
            .limit(1)
        )
        return cast(Image | None, self.session.execute(stmt).scalars().first())

    def next_order(self, user_id: int) -> int:
        """Return ``highest + 1``, or ``0`` for a user without images."""
        highest = self.find_highest_order(user_id)
        return 0 if highest is None else highest.order + 1

    def find_owned_ids(self, image_ids: Iterable[int], user_id: int) -> list[int]:
        """Return the subset of ``image_ids`` owned by ``user_id``."""
        ids = list(dict.fromkeys(image_ids))
        if not ids:
            return []
        stmt = select(Image.id).where(Image.id.in_(ids), Image.user_id == user_id)
        return list(self.session.execute(stmt).scalars().all())

    def find_owned(self, image_ids: Iterable[int], user_id: int) -> list[Image]:
        ids = list(dict.fromkeys(image_ids))
        if not ids:
            return []
        stmt = select(Image).where(Image.id.in_(ids), Image.user_id == user_id)
        return list(self.session.execute(stmt).scalars().all())

    def aggregate_stats(self, user_id: int, now: datetime) -> ImageAggregate:
        """Count images, sum bytes, and count uploads in the last seven days.

        Returns zeros for a user without images.
        """
        totals = self.session.execute(
            select(func.count(Image.id), func.coalesce(func.sum(Image.bytes), 0)).where(
                Image.user_id == user_id
            )
        ).one()
        recent = self.session.execute(
            select(func.count(Image.id)).where(
                Image.user_id == user_id,
                Image.created_at >= now - RECENT_WINDOW,
            )
        ).scalar_one()
        return ImageAggregate(
            total_images=int(totals[0]),
            total_bytes=int(totals[1]),
            recent_uploads=int(recent),
        )

    # ---------------------------- Writes ----------------------------

    def create(self, **fields: Any) -> Image:
        return self.add(Image(**fields))

    def update_orders(self, pairs: Sequence[tuple[int, int]]) -> None:
        """Apply ``(image_id, order)`` pairs in one bulk ``UPDATE`` by primary key.

        Ownership must be checked by the caller before this runs.
        """
        if not pairs:
            return
        self.session.execute(
            update(Image),
            [{"id": image_id, "order": order} for image_id, order in pairs],
        )

    def delete_many(self, image_ids: Iterable[int]) -> int:
        """Delete rows in a single statement and return how many went away."""
        ids = list(dict.fromkeys(image_ids))
        if not ids:
            return 0
        result = self.session.execute(
            delete(Image)
            .where(Image.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        for key, cached in list(self.session.identity_map.items()):
            if key[0] is Image and key[1][0] in ids:
                self.session.expunge(cached)
        return int(result.rowcount or 0)
