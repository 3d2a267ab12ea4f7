"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event, text
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session

from imagehost.core.extensions import db
from imagehost.repositories import ImageRepository, UserRepository
from imagehost.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.images = ImageRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Leaving the block without an exception commits; any exception rolls the
    whole block back and propagates. Services that need several independent
    commits (bulk upload) open one UoW per item.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session starts its transaction lazily on first use.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    This UoW:

    - Owns a fresh transaction when the session is idle and ends it with a
      rollback; when a transaction is already running (e.g. the bearer user
      lookup touched the session first) it attaches to it instead.
    - Applies ``SET TRANSACTION READ ONLY`` on PostgreSQL/MySQL when it owns
      the transaction.
    - Blocks ORM flushes that carry new, dirty, or deleted objects.
    - Disallows ``commit()``.
    """

    readonly = True
    _READONLY_DIALECTS = ("postgresql", "mysql", "mariadb")

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(session=db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._owns_txn = False
        self._guarded: Session | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._owns_txn = False
        try:
            self.session.begin()
            self._owns_txn = True
        except InvalidRequestError:
            # Already inside a transaction; inherit it.
            pass

        self._install_guard()

        if self._owns_txn and self.enforce_db_readonly:
            dialect = self.session.get_bind().dialect.name
            if dialect in self._READONLY_DIALECTS:
                try:
                    self.session.execute(text("SET TRANSACTION READ ONLY"))
                except SQLAlchemyError as exc:
                    log.warning("SET TRANSACTION READ ONLY failed (%s); guard only.", exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owns_txn:
                self.session.rollback()
        finally:
            self._owns_txn = False
            self._remove_guard()

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    # ----------------------------- Guard -----------------------------

    @staticmethod
    def _before_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )

    def _install_guard(self) -> None:
        # Listen on the concrete Session: a scoped_session target would attach
        # the listener to every session the factory produces.
        target = self.session() if isinstance(self.session, scoped_session) else self.session
        event.listen(target, "before_flush", self._before_flush)
        self._guarded = target

    def _remove_guard(self) -> None:
        if self._guarded is None:
            return
        with suppress(InvalidRequestError):
            event.remove(self._guarded, "before_flush", self._before_flush)
        self._guarded = None
