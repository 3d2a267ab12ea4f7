"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import io
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from werkzeug.datastructures import FileStorage

from imagehost.core.errors import BadRequest, Unauthorized
from imagehost.core.logger import ensure_request_id
from imagehost.infra.jwt.token_service import JWTTokenService
from imagehost.infra.mail.notifiers import build_notifier
from imagehost.infra.storage import get_storage
from imagehost.schemas.common import PaginationQuerySchema
from imagehost.services._shared.base import ServiceContext
from imagehost.services._shared.ports.object_storage import UploadedBlob
from imagehost.services.auth.dto import AuthConfig
from imagehost.services.auth.service import SessionManager
from imagehost.services.images.dto import UploadLimits
from imagehost.services.images.service import ImageLifecycleService

F = TypeVar("F", bound=Callable[..., Any])

NOTIFIER_KEY = "password_reset_notifier"


def parse_pagination(default_limit: int = 20, max_limit: int = 50) -> tuple[int, int]:
    """Parse ``page``/``limit`` from ``request.args`` using Marshmallow."""

    schema = PaginationQuerySchema(default_limit=default_limit, max_limit=max_limit)
    data = schema.load(request.args)
    return data["page"], data["limit"]


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> int:
    """Return the verified user id of the current request."""

    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError) as exc:
        raise Unauthorized("Invalid token subject") from exc


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


# ------------------------------ Multipart ------------------------------


def blob_from_file(file: FileStorage) -> UploadedBlob:
    """Read an uploaded file into memory (bounded by ``MAX_CONTENT_LENGTH``)."""

    data = file.read()
    return UploadedBlob(
        stream=io.BytesIO(data),
        mime_type=(file.mimetype or "").lower(),
        size=len(data),
        filename=file.filename or None,
    )


def single_file(field: str, *, required: bool) -> UploadedBlob | None:
    file = request.files.get(field)
    if file is None or not file.filename:
        if required:
            raise BadRequest("No image file provided")
        return None
    return blob_from_file(file)


def many_files(field: str) -> list[UploadedBlob]:
    files = [f for f in request.files.getlist(field) if f and f.filename]
    if not files:
        raise BadRequest("No files uploaded")
    return [blob_from_file(f) for f in files]


# --------------------------- Service builders ---------------------------


def _ctx(user_id: int | None = None) -> ServiceContext:
    return ServiceContext(actor_id=user_id, request_id=ensure_request_id())


def get_session_manager() -> SessionManager:
    """Build a :class:`SessionManager` from the current app configuration."""

    cfg = current_app.config
    notifier = current_app.extensions.get(NOTIFIER_KEY) or build_notifier(cfg)
    return SessionManager(
        tokens=JWTTokenService(),
        notifier=notifier,
        cfg=AuthConfig(
            password_hash_method=cfg["PASSWORD_HASH_METHOD"],
            reset_expires=cfg["PASSWORD_RESET_EXPIRES"],
            frontend_url=cfg["FRONTEND_URL"],
        ),
        ctx=_ctx(),
    )


def get_image_service(user_id: int | None = None) -> ImageLifecycleService:
    """Build an :class:`ImageLifecycleService` bound to the app's storage gateway."""

    cfg = current_app.config
    return ImageLifecycleService(
        storage=get_storage(),
        limits=UploadLimits(max_bytes=cfg["MAX_IMAGE_BYTES"], max_files=cfg["MAX_BULK_FILES"]),
        ctx=_ctx(user_id),
    )
