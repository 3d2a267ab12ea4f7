"""Object storage wiring: one gateway per app, kept in ``app.extensions``."""

from __future__ import annotations

from typing import cast

from flask import Flask, current_app

from imagehost.services._shared.ports.object_storage import ObjectStorageGateway

from .local_storage import LocalObjectStorage

EXTENSION_KEY = "object_storage"


def init_app(app: Flask, storage: ObjectStorageGateway | None = None) -> None:
    """Register the storage gateway (``LocalObjectStorage`` unless given)."""
    if storage is None:
        storage = LocalObjectStorage(
            app.config["UPLOAD_FOLDER"],
            app.config["MEDIA_BASE_URL"],
            timeout=float(app.config.get("STORAGE_TIMEOUT_SECONDS", 10)),
        )
    app.extensions[EXTENSION_KEY] = storage


def get_storage() -> ObjectStorageGateway:
    return cast(ObjectStorageGateway, current_app.extensions[EXTENSION_KEY])


__all__ = ["init_app", "get_storage", "LocalObjectStorage"]
