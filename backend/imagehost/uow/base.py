"""
Unit of Work contract shared by the auth and image services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from imagehost.repositories import ImageRepository, UserRepository


class UnitOfWork(ABC):
    """
    One database transaction around one service step.

    ``users`` and ``images`` share the transaction, so a rotation of the
    refresh token and any row it guards commit or roll back together.
    Object storage is *not* part of it: services call the storage gateway
    outside the block and compensate by hand.

    ``readonly`` units refuse to flush or commit; listing and stats use them.
    """

    users: UserRepository
    images: ImageRepository
    readonly: bool = False

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None:
        """Commit on a clean exit, roll back when an exception escapes."""

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
