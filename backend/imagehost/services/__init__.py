"""Service layer public API.

Re-exports the application services and their DTOs so callers can import
from :mod:`imagehost.services` without knowing the internal structure.

- :class:`SessionManager` (``imagehost.services.auth``): registration,
  login, password reset, refresh rotation, logout.
- :class:`ImageLifecycleService` (``imagehost.services.images``): listing,
  uploads, updates, deletes, reordering, statistics.
"""

from __future__ import annotations

from imagehost.services._shared.base import BaseService, ServiceContext
from imagehost.services.auth.dto import (
    AuthConfig,
    AuthResultOut,
    ChangePasswordIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
    ResetTokenOut,
    TokenPairOut,
    UserPublicOut,
)
from imagehost.services.auth.service import SessionManager
from imagehost.services.images.dto import ImageOut, ImagePageOut, ImageStatsOut, UploadLimits
from imagehost.services.images.service import ImageLifecycleService

__all__ = [
    "BaseService",
    "ServiceContext",
    "AuthConfig",
    "AuthResultOut",
    "ChangePasswordIn",
    "LoginIn",
    "RegisterIn",
    "ResetPasswordIn",
    "ResetTokenOut",
    "TokenPairOut",
    "UserPublicOut",
    "SessionManager",
    "ImageOut",
    "ImagePageOut",
    "ImageStatsOut",
    "UploadLimits",
    "ImageLifecycleService",
]
