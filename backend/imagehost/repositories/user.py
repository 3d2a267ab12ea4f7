"""Credential store: persistence for users, reset tokens and refresh tokens."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

from sqlalchemy import inspect, select, update
from sqlalchemy.exc import IntegrityError

from imagehost.models.user import User, normalize_email
from imagehost.repositories.base import BaseRepository
from imagehost.services._shared.errors import UserAlreadyExistsError, violates


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Passwords arrive here already hashed; this class never hashes, issues
    tokens, or decides whether a credential is acceptable. Every "is this
    token still valid" question is answered in SQL against a ``now`` value
    supplied by the caller so the check and the read cannot drift apart.
    """

    model = User

    def _updatable_fields(self) -> set[str]:
        return {
            "username",
            "email",
            "phone_number",
            "password_hash",
            "reset_password_token_hash",
            "reset_password_expires_at",
            "refresh_token",
            "refresh_token_expires_at",
        }

    # ---------------------------- Lookups ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == normalize_email(email))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == normalize_email(email))
        return self.session.execute(stmt).first() is not None

    def find_by_reset_token_hash(self, token_hash: str, now: datetime) -> User | None:
        """Return the user owning ``token_hash`` if the reset window is still open.

        :param token_hash: SHA-256 hex digest of the plaintext reset token.
        :param now: Current instant; expiry must be strictly later.
        """
        stmt = select(User).where(
            User.reset_password_token_hash == token_hash,
            User.reset_password_expires_at.is_not(None),
            User.reset_password_expires_at > now,
        )
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def find_by_active_refresh_token(
        self, user_id: int, token: str, now: datetime
    ) -> User | None:
        """Return the user when ``token`` is its current, unexpired refresh token."""
        stmt = select(User).where(
            User.id == user_id,
            User.refresh_token == token,
            User.refresh_token_expires_at.is_not(None),
            User.refresh_token_expires_at > now,
        )
        return cast(User | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Writes ----------------------------

    def create(self, **fields: Any) -> User:
        """Insert a new user.

        :param fields: Column values; ``password_hash`` must already be hashed.
        :returns: The flushed user with its primary key populated.
        :raises UserAlreadyExistsError: When the email is already registered,
            either by the pre-check or by the unique constraint under a race.
        """
        email = fields.get("email") or ""
        if self.exists_by_email(email):
            raise UserAlreadyExistsError()
        user = User(**fields)
        try:
            with self.session.begin_nested():
                self.session.add(user)
                self.session.flush()
        except IntegrityError as exc:
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise UserAlreadyExistsError() from exc
            raise
        return user

    def set_refresh_token(self, user: User, token: str, expires_at: datetime) -> User:
        return self.update(user, refresh_token=token, refresh_token_expires_at=expires_at)

    def clear_refresh_token(self, user: User) -> User:
        return self.update(user, refresh_token=None, refresh_token_expires_at=None)

    def rotate_refresh_token(
        self,
        user_id: int,
        old_token: str,
        new_token: str,
        expires_at: datetime,
        now: datetime,
    ) -> bool:
        """Swap ``old_token`` for ``new_token`` in one conditional ``UPDATE``.

        Two requests presenting the same refresh token race on this statement;
        the loser matches zero rows and the caller must treat that as an
        invalid token.

        :returns: ``True`` when exactly this call performed the rotation.
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.refresh_token == old_token,
                User.refresh_token_expires_at > now,
            )
            .values(refresh_token=new_token, refresh_token_expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        cached = self.session.identity_map.get(
            inspect(User).identity_key_from_primary_key((user_id,))
        )
        if cached is not None:
            self.session.expire(cached)
        return bool(result.rowcount == 1)
