from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param username: Display name (3 to 50 characters).
    :param email: Login email; normalized by the model.
    :param phone_number: 10 to 15 digits.
    :param password: Raw password, hashed before it reaches the store.
    """

    username: str
    email: str
    phone_number: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    token: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    current_password: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public projection of a user. Never carries hashes or tokens.
    """

    id: int
    username: str
    email: str
    phone_number: str


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class AuthResultOut:
    """Result of a successful register or login."""

    user: UserPublicOut
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class ResetTokenOut:
    """
    Result of ``forgot_password``.

    :param reset_token: Plaintext token. Only its hash is stored.
    :param reset_link: Frontend URL embedding the token.
    :param user: Owner of the token.
    """

    reset_token: str
    reset_link: str
    user: UserPublicOut


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """
    Session manager settings, usually read from the Flask config.

    :param password_hash_method: Werkzeug hashing method string.
    :param reset_expires: Lifetime of a password reset token.
    :param frontend_url: Base URL used to build reset links.
    """

    password_hash_method: str = "scrypt"
    reset_expires: timedelta = timedelta(hours=1)
    frontend_url: str = "http://localhost:5173"
