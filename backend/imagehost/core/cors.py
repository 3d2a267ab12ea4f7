"""CORS policy for the JSON API consumed by the single-page frontend."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from imagehost.core.logger import REQUEST_ID_HEADER


def init_app(app: Flask) -> None:
    """Allow the configured frontend origins to call ``/api/*``.

    ``CORS_ORIGINS`` is a comma-separated list. A blank value or ``"*"``
    opens the API to any origin and, as browsers require, turns credential
    support off. The ``Authorization`` header is always allowed because every
    image route is bearer-protected.
    """
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    wildcard = not origins or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
