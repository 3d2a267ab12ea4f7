"""Base class shared by application services."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from imagehost.models.base import utcnow
from imagehost.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param actor_id: Authenticated user identifier, when known.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Own the clock so time-dependent rules can be pinned in tests.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    Services never touch the global session directly; every database access
    goes through a Unit of Work and its repositories.
    """

    def __init__(
        self,
        *,
        ctx: ServiceContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.ctx = ctx or ServiceContext()
        self._clock = clock or utcnow
        self.log = logging.getLogger(type(self).__module__)

    def now(self) -> datetime:
        """Return the current UTC instant from the injected clock."""
        return self._clock()

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork()
