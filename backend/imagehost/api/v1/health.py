"""Liveness probe for load balancers and the deploy pipeline."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from imagehost.api.deps import json_response, timing
from imagehost.core.extensions import db
from imagehost.infra.storage import EXTENSION_KEY as STORAGE_KEY

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report database reachability and whether a storage gateway is wired.

    The endpoint is public and always answers 200; probes read ``db``.
    """

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    storage_status = "ok" if current_app.extensions.get(STORAGE_KEY) is not None else "missing"
    return json_response(
        {
            "status": "ok",
            "db": db_status,
            "storage": storage_status,
            "version": current_app.config.get("APP_VERSION", "dev"),
        }
    )
