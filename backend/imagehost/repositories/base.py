"""Generic repository base and query utilities for SQLAlchemy 2.x.

Repositories are persistence-only:

- They never implement use cases or ownership policies beyond the
  ``user_id`` predicate a query needs.
- They never call commit/rollback; the Unit of Work owns the transaction.
- Updates go through a per-repository ``_updatable_fields`` whitelist so a
  request payload can never mass-assign columns such as ``password_hash``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from imagehost.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


def clamp(value: int, low: int, high: int | None = None) -> int:
    """Clamp ``value`` into ``[low, high]`` (``high`` optional)."""
    value = max(int(value), low)
    return min(value, high) if high is not None else value


def paginate_select(
    session: Session,
    stmt: Select[Any],
    *,
    page: int,
    limit: int,
) -> tuple[list[Any], int]:
    """Execute a select with offset pagination and a total count.

    The statement's ``ORDER BY`` is stripped for the ``COUNT`` to avoid
    unnecessary sorting overhead.

    :param session: Active SQLAlchemy session.
    :param stmt: Base select to paginate (already filtered/sorted).
    :param page: 1-based page number (assumed already clamped).
    :param limit: Page size (assumed already clamped).
    :returns: Tuple of ``(items, total)``.
    :rtype: tuple[list[Any], int]
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int(session.execute(count_stmt).scalar_one())

    sliced = stmt.limit(limit).offset((page - 1) * limit)
    items = list(session.execute(sliced).scalars().all())
    return items, total


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model`` and SHOULD override
    ``_updatable_fields`` to whitelist assignable keys.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by :mod:`imagehost.core.extensions`.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _updatable_fields(self) -> set[str]:
        """Whitelist of keys that can be assigned on update."""
        return set()

    def _sanitize_update_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Return ``fields`` unchanged after checking every key is whitelisted.

        :raises ValueError: On unknown keys, or when nothing is updatable.
        """
        allowed = self._updatable_fields()
        if not allowed and fields:
            raise ValueError("No updatable fields configured for this repository.")
        unknown = [k for k in fields if k not in allowed]
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        return dict(fields)

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize its primary key."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key."""
        return cast(E | None, self.session.get(self.model, entity_id))

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()

    def update(self, instance: E, **fields: Any) -> E:
        """Assign whitelisted keys to ``instance`` and flush.

        Assignment goes through ``setattr`` so ``@validates`` hooks run.
        ``None`` is a real value here: it clears a nullable column.

        :param instance: Entity to mutate.
        :param fields: Column values to assign.
        :returns: The mutated instance.
        :raises ValueError: If a key is not whitelisted.
        """
        for key, value in self._sanitize_update_fields(fields).items():
            setattr(instance, key, value)
        self.flush()
        return instance
