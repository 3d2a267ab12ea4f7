"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from imagehost.core.logger import ensure_request_id
from imagehost.services._shared.errors import (
    AuthError,
    ExternalStorageError,
    InvalidRefreshTokenError,
    NotFoundError,
    OwnershipError,
    ServiceError,
    TokenError,
    UnauthorizedError,
    ValidationError,
)

log = logging.getLogger(__name__)

# Ordered: the first matching class wins, so subclasses precede their parents.
SERVICE_ERROR_MAP: tuple[tuple[type[ServiceError], int, str], ...] = (
    (InvalidRefreshTokenError, HTTPStatus.UNAUTHORIZED, "invalid_refresh_token"),
    (UnauthorizedError, HTTPStatus.UNAUTHORIZED, "unauthorized"),
    (TokenError, HTTPStatus.UNAUTHORIZED, "AUTH_ERROR"),
    (ValidationError, HTTPStatus.BAD_REQUEST, "validation_error"),
    (AuthError, HTTPStatus.BAD_REQUEST, "bad_request"),
    (NotFoundError, HTTPStatus.NOT_FOUND, "not_found"),
    (OwnershipError, HTTPStatus.FORBIDDEN, "forbidden"),
    (ExternalStorageError, HTTPStatus.INTERNAL_SERVER_ERROR, "storage_unavailable"),
)


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    The human summary is exposed twice: as ``detail`` (RFC 7807) and as
    ``message`` for clients that read the plain ``{message}`` envelope.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": message,
        "message": message,
        "instance": request.path if has_request_context() else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """
    Return a Flask response with ``application/problem+json`` media type.

    :param problem: Problem details payload.
    :returns: Flask JSON Response with proper MIME type.
    :rtype: flask.Response
    """
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


def problem(status: int, code: str, message: str) -> tuple[Response, int]:
    """Shortcut returning a ``(response, status)`` pair for callbacks."""
    return _problem_response(_as_problem(status=status, code=code, message=message)), int(status)


def translate_service_error(err: ServiceError) -> tuple[int, str]:
    """
    Resolve the HTTP status and error code for a service-layer exception.

    :param err: Raised service error.
    :returns: ``(status, code)``; unknown subclasses map to ``400 bad_request``.
    :rtype: tuple[int, str]
    """
    for exc_type, status, code in SERVICE_ERROR_MAP:
        if isinstance(err, exc_type):
            return int(status), code
    return int(HTTPStatus.BAD_REQUEST), "bad_request"


class APIError(Exception):
    """
    Represent a JSON-serializable API error raised from the HTTP layer.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Optional structured payload included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class BadRequest(APIError):
    """400 for malformed multipart or JSON payloads."""

    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message, status_code=HTTPStatus.BAD_REQUEST, code="bad_request")


class Unauthorized(APIError):
    """401 when authentication fails."""

    def __init__(self, message: str = "Unauthorized", code: str = "AUTH_ERROR") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


def _register_jwt_callbacks() -> None:
    """Shape flask-jwt-extended failures into the same problem documents."""
    from imagehost.core.extensions import db, jwt
    from imagehost.models.user import User

    @jwt.expired_token_loader
    def _expired(_header: dict, _payload: dict):
        return problem(HTTPStatus.UNAUTHORIZED, "TOKEN_EXPIRED", "Access token expired")

    @jwt.invalid_token_loader
    def _invalid(reason: str):
        log.info("Rejected bearer token: %s", reason)
        return problem(HTTPStatus.UNAUTHORIZED, "AUTH_ERROR", "Invalid token")

    @jwt.unauthorized_loader
    def _missing(reason: str):
        return problem(HTTPStatus.UNAUTHORIZED, "AUTH_ERROR", "Access token required")

    @jwt.user_lookup_loader
    def _lookup(_header: dict, payload: dict):
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return db.session.get(User, user_id)

    @jwt.user_lookup_error_loader
    def _lookup_failed(_header: dict, _payload: dict):
        return problem(HTTPStatus.UNAUTHORIZED, "AUTH_ERROR", "User not found")


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Ensures a correlation ``request_id`` is present on every error.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """
    _register_jwt_callbacks()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        body = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            body.get("request_id"),
        )
        return _problem_response(body), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        status, code = translate_service_error(err)
        if status >= 500:
            # Provider detail stays in the logs.
            body = _as_problem(status=status, code=code, message="Storage provider unavailable")
            log.error(
                "%s: request_id=%s",
                type(err).__name__,
                body.get("request_id"),
                exc_info=True,
            )
        else:
            body = _as_problem(status=status, code=code, message=err.message)
            log.warning(
                "%s: status=%s msg=%s request_id=%s",
                type(err).__name__,
                status,
                err.message,
                body.get("request_id"),
            )
        return _problem_response(body), status

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and has_request_context():
            message = f"Route '{request.path}' not found"
        body = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            body.get("request_id"),
        )
        return _problem_response(body), status

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        messages = err.normalized_messages()
        # First field message doubles as the summary (e.g. "Title is required").
        first = next(iter(messages.values()), None) if isinstance(messages, dict) else None
        summary = first[0] if isinstance(first, list) and first else "Validation failed"
        if not isinstance(summary, str):
            summary = "Validation failed"
        body = _as_problem(
            status=HTTPStatus.BAD_REQUEST,
            code="validation_error",
            message=summary,
            details={"errors": messages},
        )
        log.warning("ValidationError: request_id=%s", body.get("request_id"))
        return _problem_response(body), HTTPStatus.BAD_REQUEST

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        body = _as_problem(
            status=HTTPStatus.CONFLICT,
            code="conflict",
            message="Resource conflict",
        )
        log.error("IntegrityError: request_id=%s", body.get("request_id"), exc_info=True)
        return _problem_response(body), HTTPStatus.CONFLICT

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        body = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error("OperationalError: request_id=%s", body.get("request_id"), exc_info=True)
        return _problem_response(body), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        body = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Internal Server Error",
        )
        log.error("Unhandled exception: request_id=%s", body.get("request_id"), exc_info=True)
        return _problem_response(body), HTTPStatus.INTERNAL_SERVER_ERROR
