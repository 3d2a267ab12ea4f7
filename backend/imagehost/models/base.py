"""Column mixins and the application clock shared by ``users`` and ``images``."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Application clock: timezone-aware UTC ``now``.

    Row timestamps, token expiries and the stats window all read this
    function, so freezing it freezes the whole domain.
    """
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Add ``created_at``/``updated_at`` columns.

    ``created_at`` drives the gallery tie-break (same ``order``, newest first)
    and the seven-day "recent uploads" counter, so it is stamped from
    :func:`utcnow` rather than left to the database. The server defaults only
    cover rows inserted outside the ORM (migrations, manual SQL).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )


class PKMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class ReprMixin:
    """Debug ``__repr__`` built from ``id`` plus the names in ``repr_attrs``.

    Secrets (password hashes, refresh tokens) must never be listed.
    """

    repr_attrs: ClassVar[tuple[str, ...]] = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts.extend(f"{name}={getattr(self, name, None)!r}" for name in self.repr_attrs)
        return f"<{self.__class__.__name__} {' '.join(parts)}>"
