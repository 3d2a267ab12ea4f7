"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthResultSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenPairSchema,
    UserSchema,
)
from .common import PaginationQuerySchema
from .image import (
    BulkDeleteSchema,
    ImagePageSchema,
    ImageSchema,
    ImageStatsSchema,
    ImageTitleSchema,
    RearrangeSchema,
)

__all__ = [
    "AuthResultSchema",
    "ChangePasswordSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "ResetPasswordSchema",
    "TokenPairSchema",
    "UserSchema",
    "PaginationQuerySchema",
    "BulkDeleteSchema",
    "ImagePageSchema",
    "ImageSchema",
    "ImageStatsSchema",
    "ImageTitleSchema",
    "RearrangeSchema",
]
