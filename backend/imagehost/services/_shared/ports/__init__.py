"""
imagehost.services._shared.ports
================================

*Ports* (hexagonal interfaces) the services depend on, with in-memory test
doubles next to each contract. Concrete adapters live under
``imagehost.infra``.

Modules
-------
- :mod:`token_service`: :class:`~.TokenService` issues and verifies access
  and refresh tokens; :class:`~.StubTokenService` is deterministic.
- :mod:`object_storage`: :class:`~.ObjectStorageGateway` stores and releases
  image binaries; :class:`~.InMemoryObjectStorage` injects failures.
- :mod:`notifier`: :class:`~.PasswordResetNotifier` delivers reset links.
"""

from __future__ import annotations

from .notifier import PasswordResetNotifier, RecordingNotifier
from .object_storage import (
    InMemoryObjectStorage,
    ObjectStorageGateway,
    StoredObject,
    UploadedBlob,
)
from .token_service import StubTokenService, TokenService

__all__ = [
    "TokenService",
    "StubTokenService",
    "ObjectStorageGateway",
    "InMemoryObjectStorage",
    "StoredObject",
    "UploadedBlob",
    "PasswordResetNotifier",
    "RecordingNotifier",
]
