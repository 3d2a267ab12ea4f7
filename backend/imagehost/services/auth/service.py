from __future__ import annotations

import hashlib
import secrets
from collections.abc import Callable
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from imagehost.models.user import User
from imagehost.services._shared.base import BaseService, ServiceContext
from imagehost.services._shared.errors import (
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidRefreshTokenError,
    TokenError,
    UnauthorizedError,
)
from imagehost.services._shared.ports.notifier import PasswordResetNotifier
from imagehost.services._shared.ports.token_service import TokenService
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
from imagehost.uow.base import UnitOfWork


def hash_reset_token(token: str) -> str:
    """Return the SHA-256 hex digest under which a reset token is stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def to_public(user: User) -> UserPublicOut:
    return UserPublicOut(
        id=user.id,
        username=user.username,
        email=user.email,
        phone_number=user.phone_number,
    )


class SessionManager(BaseService):
    """
    Account and session lifecycle: register, login, password reset,
    refresh rotation, and logout.

    A user holds at most one refresh token at a time. Login and refresh
    replace it, logout and any password change clear it, so the previous
    token stops working the moment a new one is issued. Access tokens are
    stateless and live until their own expiry.

    Login and forgot-password answer every kind of failure with the same
    :class:`InvalidCredentialsError` so responses do not reveal which
    emails are registered.
    """

    def __init__(
        self,
        *,
        tokens: TokenService,
        notifier: PasswordResetNotifier | None = None,
        cfg: AuthConfig | None = None,
        ctx: ServiceContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param tokens: Issues and verifies access/refresh tokens.
        :param notifier: Delivers reset links; ``None`` skips delivery.
        :param cfg: Hashing and reset settings.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.tokens = tokens
        self.notifier = notifier
        self.cfg = cfg or AuthConfig()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _hash_password(self, raw: str) -> str:
        return generate_password_hash(raw, method=self.cfg.password_hash_method)

    def _issue_pair(self, uow: UnitOfWork, user: User) -> TokenPairOut:
        """Issue a new pair and make its refresh token the only valid one."""
        access = self.tokens.issue_access_token(user.id)
        refresh = self.tokens.issue_refresh_token(user.id)
        uow.users.set_refresh_token(user, refresh, self.tokens.refresh_expires_at())
        return TokenPairOut(access_token=access, refresh_token=refresh)

    # ------------------------------------------------------------------ #
    # Register / login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResultOut:
        """
        Create an account and sign it in.

        :raises UserAlreadyExistsError: When the email is already registered.
        """
        with self.rw_uow() as uow:
            user = uow.users.create(
                username=dto.username,
                email=dto.email,
                phone_number=dto.phone_number,
                password_hash=self._hash_password(dto.password),
            )
            pair = self._issue_pair(uow, user)
            out = AuthResultOut(
                user=to_public(user),
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
            )
        self.log.info("User registered", extra={"user_id": out.user.id})
        return out

    def login(self, dto: LoginIn) -> AuthResultOut:
        """
        Verify credentials and issue a fresh pair, replacing any prior session.

        :raises InvalidCredentialsError: Unknown email, missing hash, or wrong
            password, indistinguishably.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            if (
                user is None
                or not user.password_hash
                or not check_password_hash(user.password_hash, dto.password)
            ):
                raise InvalidCredentialsError()
            pair = self._issue_pair(uow, user)
            out = AuthResultOut(
                user=to_public(user),
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
            )
        self.log.info("User logged in", extra={"user_id": out.user.id})
        return out

    # ------------------------------------------------------------------ #
    # Password reset
    # ------------------------------------------------------------------ #

    def forgot_password(self, email: str) -> ResetTokenOut:
        """
        Mint a one-hour reset token and hand it to the notifier.

        Only the SHA-256 digest is persisted; the plaintext is returned to the
        caller and never stored. Notifier failures are logged, not raised.

        :raises InvalidCredentialsError: When no account has this email. Nothing
            is written in that case.
        """
        token = secrets.token_hex(32)
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(email)
            if user is None:
                raise InvalidCredentialsError()
            uow.users.update(
                user,
                reset_password_token_hash=hash_reset_token(token),
                reset_password_expires_at=self.now() + self.cfg.reset_expires,
            )
            public = to_public(user)

        link = f"{self.cfg.frontend_url.rstrip('/')}/reset-password/{token}"
        if self.notifier is not None:
            try:
                self.notifier.send_reset_link(
                    email=public.email, username=public.username, reset_link=link
                )
            except OSError:
                self.log.exception("Password reset delivery failed", extra={"user_id": public.id})
        return ResetTokenOut(reset_token=token, reset_link=link, user=public)

    def reset_password(self, dto: ResetPasswordIn) -> None:
        """
        Consume a reset token, set the new password, and end every session.

        :raises InvalidOrExpiredTokenError: Unknown, used, or expired token.
        """
        with self.rw_uow() as uow:
            user = uow.users.find_by_reset_token_hash(hash_reset_token(dto.token), self.now())
            if user is None:
                raise InvalidOrExpiredTokenError()
            uow.users.update(
                user,
                password_hash=self._hash_password(dto.new_password),
                reset_password_token_hash=None,
                reset_password_expires_at=None,
                refresh_token=None,
                refresh_token_expires_at=None,
            )
            user_id = user.id
        self.log.info("Password reset", extra={"user_id": user_id})

    def change_password(self, user_id: int, dto: ChangePasswordIn) -> None:
        """
        Replace the password of a signed-in user and end every session.

        :raises UnauthorizedError: When the user no longer exists.
        :raises InvalidCredentialsError: When ``current_password`` is wrong.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise UnauthorizedError()
            if not user.password_hash or not check_password_hash(
                user.password_hash, dto.current_password
            ):
                raise InvalidCredentialsError()
            uow.users.update(
                user,
                password_hash=self._hash_password(dto.new_password),
                reset_password_token_hash=None,
                reset_password_expires_at=None,
                refresh_token=None,
                refresh_token_expires_at=None,
            )
        self.log.info("Password changed", extra={"user_id": user_id})

    # ------------------------------------------------------------------ #
    # Refresh / logout
    # ------------------------------------------------------------------ #

    def refresh_access_token(self, refresh_token: str) -> TokenPairOut:
        """
        Exchange the current refresh token for a new pair.

        The old token stops working: rotation is a conditional update, and a
        concurrent request presenting the same token loses and fails.

        :raises InvalidRefreshTokenError: Bad signature, expired, not the
            user's current token, or lost a rotation race.
        """
        try:
            user_id = self.tokens.verify_refresh_token(refresh_token)
        except TokenError as exc:
            raise InvalidRefreshTokenError() from exc

        now = self.now()
        with self.rw_uow() as uow:
            user = uow.users.find_by_active_refresh_token(user_id, refresh_token, now)
            if user is None:
                raise InvalidRefreshTokenError()
            access = self.tokens.issue_access_token(user_id)
            new_refresh = self.tokens.issue_refresh_token(user_id)
            rotated = uow.users.rotate_refresh_token(
                user_id,
                refresh_token,
                new_refresh,
                self.tokens.refresh_expires_at(),
                now,
            )
            if not rotated:
                raise InvalidRefreshTokenError()
        return TokenPairOut(access_token=access, refresh_token=new_refresh)

    def logout(self, user_id: int) -> None:
        """
        Forget the user's refresh token. Idempotent.

        :raises UnauthorizedError: When the user no longer exists.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise UnauthorizedError()
            uow.users.clear_refresh_token(user)
        self.log.info("User logged out", extra={"user_id": user_id})

    def get_profile(self, user_id: int) -> UserPublicOut:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise UnauthorizedError()
            return to_public(user)
