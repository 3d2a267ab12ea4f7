"""Authentication-related Marshmallow schemas.

Wire keys are camelCase (``userName``, ``phoneNumber``); attribute names
stay snake_case through ``data_key``.
"""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, pre_load, validate

PASSWORD_LENGTH = validate.Length(min=6, max=128)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    TRIMMED_KEYS = ("userName", "email", "phoneNumber")

    username = fields.String(
        data_key="userName", required=True, validate=validate.Length(min=3, max=50)
    )
    email = fields.Email(
        required=True,
        validate=[
            validate.Length(max=254),
            validate.Regexp(r"^[^@]+@[^@]+\.[^@]+$", error="Email format looks invalid."),
        ],
    )
    phone_number = fields.String(
        data_key="phoneNumber",
        required=True,
        validate=validate.Regexp(r"^\d{10,15}$", error="Phone number must be 10-15 digits"),
    )
    password = fields.String(required=True, validate=PASSWORD_LENGTH)

    @pre_load
    def strip_identity_fields(self, data: Any, **_: Any) -> Any:
        """Trim identity fields so length rules see what gets stored."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in self.TRIMMED_KEYS:
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        return data


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class ForgotPasswordSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=254))


class ResetPasswordSchema(Schema):
    token = fields.String(required=True, validate=validate.Length(min=1, max=128))
    password = fields.String(required=True, validate=PASSWORD_LENGTH)


class ChangePasswordSchema(Schema):
    current_password = fields.String(
        data_key="currentPassword", required=True, validate=validate.Length(min=1, max=128)
    )
    new_password = fields.String(data_key="newPassword", required=True, validate=PASSWORD_LENGTH)


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(
        data_key="refreshToken", required=True, validate=validate.Length(min=1)
    )


class UserSchema(Schema):
    """Public user representation."""

    id = fields.Integer(required=True)
    username = fields.String(data_key="userName", required=True)
    email = fields.Email(required=True)
    phone_number = fields.String(data_key="phoneNumber", required=True)


class TokenPairSchema(Schema):
    access_token = fields.String(data_key="accessToken", required=True)
    refresh_token = fields.String(data_key="refreshToken", required=True)


class AuthResultSchema(TokenPairSchema):
    """Register/login response: token pair plus the public user."""

    user = fields.Nested(UserSchema, required=True)
