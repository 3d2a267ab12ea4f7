"""Filesystem-backed object storage for single-host deployments and development."""

from __future__ import annotations

import io
import logging
import posixpath
import weakref
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import TypeVar
from uuid import uuid4

from PIL import Image as PILImage
from PIL import ImageOps, UnidentifiedImageError
from werkzeug.utils import secure_filename

from imagehost.services._shared.errors import InvalidUploadError, StorageUnavailableError
from imagehost.services._shared.ports.object_storage import (
    THUMBNAIL_SIZE,
    ObjectStorageGateway,
    StoredObject,
    UploadedBlob,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

PIL_TO_FORMAT = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "WEBP": "webp", "BMP": "bmp"}


class LocalObjectStorage(ObjectStorageGateway):
    """
    Store blobs under ``root`` and serve them from ``base_url``.

    Descriptors are relative POSIX paths such as ``images/7/ab12...cd.png``.
    A 300x300 WebP thumbnail is rendered next to each original under
    ``thumbnails/``. Each call runs on a worker thread and is abandoned after
    ``timeout`` seconds, surfacing as :class:`StorageUnavailableError`.

    :param root: Filesystem directory holding every blob.
    :param base_url: Public URL prefix mapped onto ``root``.
    :param timeout: Upper bound for a single store/delete call.
    """

    def __init__(self, root: str | Path, base_url: str, *, timeout: float = 10.0) -> None:
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="storage")
        weakref.finalize(self, self._executor.shutdown, wait=False)

    # ------------------------------ Public API ------------------------------

    def store(self, blob: UploadedBlob, *, folder: str) -> StoredObject:
        return self._bounded(lambda: self._store(blob, folder), on_late=self._discard_late)

    def delete(self, descriptor: str) -> bool:
        return self._bounded(lambda: self._delete(descriptor))

    def derive_thumbnail_url(
        self, descriptor: str, *, width: int = THUMBNAIL_SIZE, height: int = THUMBNAIL_SIZE
    ) -> str:
        return f"{self.base_url}/{self._thumbnail_key(descriptor, width, height)}"

    def close(self) -> None:
        """Wait for in-flight calls, then stop the worker threads."""
        self._executor.shutdown(wait=True)

    # ------------------------------ Internals -------------------------------

    def _bounded(self, fn: Callable[[], T], *, on_late: Callable[[T], None] | None = None) -> T:
        """Run ``fn`` on a worker, giving up after ``timeout`` seconds.

        A call that is already running cannot be cancelled. When it later
        succeeds, ``on_late`` receives its result so side effects nobody will
        reference can be undone.
        """
        future = self._executor.submit(fn)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as exc:
            if not future.cancel() and on_late is not None:
                future.add_done_callback(lambda done: _deliver_late(done, on_late))
            raise StorageUnavailableError("Storage call timed out") from exc

    def _discard_late(self, stored: StoredObject) -> None:
        log.warning("Discarding blob stored after timeout", extra={"descriptor": stored.descriptor})
        try:
            self._delete(stored.descriptor)
        except StorageUnavailableError:
            log.warning(
                "Could not discard late blob", extra={"descriptor": stored.descriptor}, exc_info=True
            )

    @staticmethod
    def _thumbnail_key(descriptor: str, width: int, height: int) -> str:
        stem = posixpath.splitext(descriptor)[0]
        return f"thumbnails/{width}x{height}/{stem}.webp"

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise StorageUnavailableError("Descriptor escapes the storage root")
        return path

    def _store(self, blob: UploadedBlob, folder: str) -> StoredObject:
        data = blob.stream.read()
        try:
            with PILImage.open(io.BytesIO(data)) as probe:
                probe.verify()
            with PILImage.open(io.BytesIO(data)) as img:
                fmt = PIL_TO_FORMAT.get(img.format or "")
                width, height = img.size
                thumb = ImageOps.fit(img.convert("RGBA"), (THUMBNAIL_SIZE, THUMBNAIL_SIZE))
        except (UnidentifiedImageError, PILImage.DecompressionBombError, OSError, SyntaxError) as exc:
            raise InvalidUploadError("Only image files are allowed!") from exc
        if fmt is None:
            raise InvalidUploadError("Only image files are allowed!")

        hint = secure_filename(blob.filename or "")
        hint = posixpath.splitext(hint)[0][:40]
        name = f"{uuid4().hex}-{hint}" if hint else uuid4().hex
        descriptor = posixpath.join(secure_folder(folder), f"{name}.{fmt}")
        thumb_key = self._thumbnail_key(descriptor, THUMBNAIL_SIZE, THUMBNAIL_SIZE)

        try:
            target = self._path(descriptor)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            thumb_path = self._path(thumb_key)
            thumb_path.parent.mkdir(parents=True, exist_ok=True)
            thumb.save(thumb_path, format="WEBP")
        except OSError as exc:
            raise StorageUnavailableError("Could not write blob") from exc

        return StoredObject(
            descriptor=descriptor,
            url=f"{self.base_url}/{descriptor}",
            thumbnail_url=self.derive_thumbnail_url(descriptor),
            format=fmt,
            bytes=len(data),
            width=width,
            height=height,
        )

    def _delete(self, descriptor: str) -> bool:
        target = self._path(descriptor)
        thumb = self._path(self._thumbnail_key(descriptor, THUMBNAIL_SIZE, THUMBNAIL_SIZE))
        try:
            existed = target.exists()
            target.unlink(missing_ok=True)
            thumb.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailableError("Could not delete blob") from exc
        if not existed:
            log.info("Blob already absent", extra={"descriptor": descriptor})
        return existed


def _deliver_late(future: Future, handler: Callable[[T], None]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    handler(future.result())


def secure_folder(folder: str) -> str:
    """Sanitize every segment of a slash-separated folder name."""
    parts = [secure_filename(part) for part in folder.split("/")]
    return "/".join(part for part in parts if part)
