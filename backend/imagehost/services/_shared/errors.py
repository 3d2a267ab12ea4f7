"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable contract between repositories, adapters, and
application services; ``imagehost.core.errors`` translates them into
RFC 7807 responses.

Hierarchy
---------
- :class:`ServiceError`
    - :class:`ValidationError` (malformed input, rejected before side effects)
    - :class:`AuthError` (registration, credentials, reset and refresh tokens)
    - :class:`NotFoundError` (missing *or foreign* resources, same shape)
    - :class:`OwnershipError` (a foreign id inside a batch)
    - :class:`ExternalStorageError` (object storage provider failures)
    - :class:`TokenError` (low-level token verification outcomes)
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Database constraint to match (e.g. ``uq_users_email``).
    :returns: ``True`` when the driver message mentions the constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Subclasses provide a class-level ``default_message`` so callers can raise
    them without arguments and still produce a client-safe summary.
    """

    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class ValidationError(ServiceError):
    default_message = "Validation error"


class AuthError(ServiceError):
    default_message = "Authentication failed"


class NotFoundError(ServiceError):
    default_message = "Resource not found"


class OwnershipError(ServiceError):
    default_message = "Forbidden"


class ExternalStorageError(ServiceError):
    default_message = "Storage provider unavailable"


class TokenError(ServiceError):
    default_message = "Invalid token"


# --------------------------------------------------------------------------- #
# Validation
# --------------------------------------------------------------------------- #


class TitleCountMismatchError(ValidationError):
    default_message = "Title count must match file count"


@dataclass(slots=True)
class InvalidUploadError(ValidationError):
    """
    Raised when an uploaded blob violates the upload policy.

    :param reason: Client-safe explanation (type or size violation).
    :type reason: str
    """

    reason: str

    def __post_init__(self) -> None:
        ValidationError.__init__(self, self.reason)

    def __str__(self) -> str:  # pragma: no cover
        return self.reason


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class UserAlreadyExistsError(AuthError):
    default_message = "User already exists, please login."


class InvalidCredentialsError(AuthError):
    default_message = "Invalid credentials"


class InvalidOrExpiredTokenError(AuthError):
    default_message = "Invalid or expired token"


class InvalidRefreshTokenError(AuthError):
    default_message = "Invalid refresh token"


class UnauthorizedError(AuthError):
    default_message = "Unauthorized access"


# --------------------------------------------------------------------------- #
# Images
# --------------------------------------------------------------------------- #


class ImageNotFoundError(NotFoundError):
    default_message = "Image not found"


class NoImagesFoundError(NotFoundError):
    default_message = "No images found"


class ForbiddenReorderError(OwnershipError):
    default_message = "Some images do not belong to user"


class StorageUnavailableError(ExternalStorageError):
    pass


# --------------------------------------------------------------------------- #
# Tokens
# --------------------------------------------------------------------------- #


class InvalidTokenError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    default_message = "Token has expired"
