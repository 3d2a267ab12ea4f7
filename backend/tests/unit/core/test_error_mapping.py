"""Tests for service error to HTTP translation."""

from __future__ import annotations

import pytest

from imagehost.core.errors import translate_service_error
from imagehost.services._shared.errors import (
    ExpiredTokenError,
    ForbiddenReorderError,
    ImageNotFoundError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidRefreshTokenError,
    InvalidUploadError,
    NoImagesFoundError,
    ServiceError,
    StorageUnavailableError,
    TitleCountMismatchError,
    UnauthorizedError,
    UserAlreadyExistsError,
)


@pytest.mark.parametrize(
    "error, expected",
    [
        (InvalidRefreshTokenError(), (401, "invalid_refresh_token")),
        (UnauthorizedError(), (401, "unauthorized")),
        (ExpiredTokenError(), (401, "AUTH_ERROR")),
        (TitleCountMismatchError(), (400, "validation_error")),
        (InvalidUploadError("Only image files are allowed!"), (400, "validation_error")),
        (UserAlreadyExistsError(), (400, "bad_request")),
        (InvalidCredentialsError(), (400, "bad_request")),
        (InvalidOrExpiredTokenError(), (400, "bad_request")),
        (ImageNotFoundError(), (404, "not_found")),
        (NoImagesFoundError(), (404, "not_found")),
        (ForbiddenReorderError(), (403, "forbidden")),
        (StorageUnavailableError(), (500, "storage_unavailable")),
        (ServiceError(), (400, "bad_request")),
    ],
)
def test_translate_service_error(error, expected):
    assert translate_service_error(error) == expected


def test_default_messages():
    assert UserAlreadyExistsError().message == "User already exists, please login."
    assert ForbiddenReorderError().message == "Some images do not belong to user"
    assert InvalidUploadError("too big").message == "too big"
