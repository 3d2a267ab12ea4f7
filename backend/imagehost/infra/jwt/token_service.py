from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import uuid4

import jwt as pyjwt
from flask import current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from imagehost.services._shared.errors import ExpiredTokenError, InvalidTokenError
from imagehost.services._shared.ports.token_service import TokenService

REFRESH_TYPE = "refresh"


def _subject_to_user_id(payload: dict[str, Any]) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError() from exc


@dataclass(slots=True)
class JWTTokenService(TokenService):
    """
    Token adapter backed by Flask-JWT-Extended and PyJWT.

    Access tokens are minted by Flask-JWT-Extended so ``@require_auth``
    routes accept them unchanged. Refresh tokens are signed directly with
    PyJWT under ``JWT_REFRESH_SECRET_KEY``: Flask-JWT-Extended signs every
    token type with one key, and the two kinds must not share a secret.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    refresh_secret: str | None = None
    refresh_ttl: timedelta | None = None
    algorithm: str | None = None

    def _cfg(self, key: str) -> Any:
        return current_app.config[key]

    def _refresh_secret(self) -> str:
        return self.refresh_secret or cast(str, self._cfg("JWT_REFRESH_SECRET_KEY"))

    def _refresh_ttl(self) -> timedelta:
        return self.refresh_ttl or cast(timedelta, self._cfg("JWT_REFRESH_TOKEN_EXPIRES"))

    def _algorithm(self) -> str:
        return self.algorithm or cast(str, self._cfg("JWT_ALGORITHM"))

    # ------------------------------ Access ------------------------------

    def issue_access_token(self, user_id: int) -> str:
        return cast(str, create_access_token(identity=str(user_id)))

    def verify_access_token(self, token: str) -> int:
        try:
            payload = cast(dict[str, Any], decode_token(token))
        except pyjwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError() from exc
        except (pyjwt.PyJWTError, JWTExtendedException) as exc:
            raise InvalidTokenError() from exc
        if payload.get("type") != "access":
            raise InvalidTokenError()
        return _subject_to_user_id(payload)

    # ------------------------------ Refresh -----------------------------

    def refresh_expires_at(self) -> datetime:
        return datetime.now(tz=UTC) + self._refresh_ttl()

    def issue_refresh_token(self, user_id: int) -> str:
        now = datetime.now(tz=UTC)
        claims = {
            "sub": str(user_id),
            "type": REFRESH_TYPE,
            "iat": now,
            "exp": now + self._refresh_ttl(),
            # Two tokens minted in the same second must still differ.
            "jti": uuid4().hex,
        }
        return pyjwt.encode(claims, self._refresh_secret(), algorithm=self._algorithm())

    def verify_refresh_token(self, token: str) -> int:
        try:
            payload = pyjwt.decode(
                token,
                self._refresh_secret(),
                algorithms=[self._algorithm()],
                options={"require": ["exp", "sub"]},
            )
        except pyjwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError() from exc
        except pyjwt.PyJWTError as exc:
            raise InvalidTokenError() from exc
        if payload.get("type") != REFRESH_TYPE:
            raise InvalidTokenError()
        return _subject_to_user_id(payload)
