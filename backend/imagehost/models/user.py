"""User model holding credentials and session state for the image host."""

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from imagehost.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

PHONE_RE = re.compile(r"^\d{10,15}$")


def normalize_email(value: str) -> str:
    """Trim and lowercase an email address; lookups apply the same rule."""
    return value.strip().lower()


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity and the persisted side of its sessions.

    Fields
    ------
    username : str
        Display name (3 to 50 characters, trimmed).
    email : str
        Login email. Stored normalized (lowercase, trimmed) and unique.
    phone_number : str
        Contact number made of 10 to 15 digits.
    password_hash : str | None
        Werkzeug password hash. Never serialized.
    reset_password_token_hash : str | None
        SHA-256 hex digest of the outstanding reset token.
    reset_password_expires_at : datetime | None
        Expiry of the outstanding reset token.
    refresh_token : str | None
        The single refresh token currently accepted for this user.
    refresh_token_expires_at : datetime | None
        Expiry of ``refresh_token``. A past value means "no session".
    """

    __tablename__ = "users"
    repr_attrs = ("email",)

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(15), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    reset_password_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reset_password_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refresh_token: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    refresh_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_reset_password_token_hash", "reset_password_token_hash"),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :param value: Email to normalize.
        :returns: Normalized email (lowercased/trimmed).
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = normalize_email(value)
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        v = value.strip()
        if not 3 <= len(v) <= 50:
            raise ValueError("Username must be between 3 and 50 characters.")
        return v

    @validates("phone_number")
    def _validate_phone(self, key: str, value: str) -> str:
        v = (value or "").strip()
        if not PHONE_RE.match(v):
            raise ValueError("Phone number must contain 10 to 15 digits.")
        return v
