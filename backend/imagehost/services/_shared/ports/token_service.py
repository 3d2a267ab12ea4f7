from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from imagehost.services._shared.errors import ExpiredTokenError, InvalidTokenError


class TokenService(Protocol):
    """Port for issuing and verifying access and refresh tokens.

    Both verifiers return the user id carried by the token and raise
    :class:`InvalidTokenError` or :class:`ExpiredTokenError` otherwise. A
    token of one kind never verifies as the other.
    """

    def issue_access_token(self, user_id: int) -> str: ...

    def issue_refresh_token(self, user_id: int) -> str: ...

    def verify_access_token(self, token: str) -> int: ...

    def verify_refresh_token(self, token: str) -> int: ...

    def refresh_expires_at(self) -> datetime: ...


class StubTokenService(TokenService):
    """Deterministic token service used in unit tests.

    Tokens are opaque strings remembered in memory together with their
    expiry. Expiry is evaluated against the wall clock at verification time,
    so ``freezegun`` can move a token past its lifetime.
    """

    def __init__(
        self,
        *,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def _mk(self, user_id: int, ttype: str, ttl: timedelta) -> str:
        self._seq += 1
        token = f"{ttype}.{user_id}.{self._seq}"
        self._issued[token] = {
            "sub": user_id,
            "type": ttype,
            "exp": datetime.now(tz=UTC) + ttl,
        }
        return token

    def _verify(self, token: str, ttype: str) -> int:
        payload = self._issued.get(token)
        if payload is None or payload["type"] != ttype:
            raise InvalidTokenError()
        if payload["exp"] <= datetime.now(tz=UTC):
            raise ExpiredTokenError()
        return int(payload["sub"])

    def issue_access_token(self, user_id: int) -> str:
        return self._mk(user_id, "access", self.access_ttl)

    def issue_refresh_token(self, user_id: int) -> str:
        return self._mk(user_id, "refresh", self.refresh_ttl)

    def verify_access_token(self, token: str) -> int:
        return self._verify(token, "access")

    def verify_refresh_token(self, token: str) -> int:
        return self._verify(token, "refresh")

    def refresh_expires_at(self) -> datetime:
        return datetime.now(tz=UTC) + self.refresh_ttl
