"""Object storage port: where image binaries live, outside the database."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol
from uuid import uuid4

from imagehost.services._shared.errors import StorageUnavailableError

MIME_TO_FORMAT = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

THUMBNAIL_SIZE = 300


@dataclass(slots=True)
class UploadedBlob:
    """
    An uploaded file, already read from the request.

    :param stream: Readable binary stream positioned at the start.
    :param mime_type: Client-declared content type.
    :param size: Size in bytes.
    :param filename: Client-side file name, if any.
    """

    stream: BinaryIO
    mime_type: str
    size: int
    filename: str | None = None


@dataclass(frozen=True, slots=True)
class StoredObject:
    """
    What the storage provider reports after a successful ``store``.

    :param descriptor: Opaque id used later to delete the blob.
    :param url: Public delivery URL.
    :param thumbnail_url: 300x300 thumbnail URL derived from ``descriptor``.
    :param format: Normalized file extension (``jpg``, ``png``...).
    :param bytes: Stored size.
    """

    descriptor: str
    url: str
    thumbnail_url: str
    format: str
    bytes: int
    width: int | None = None
    height: int | None = None


class ObjectStorageGateway(Protocol):
    """Port for storing and releasing image binaries.

    ``store`` and ``delete`` raise :class:`StorageUnavailableError` on any
    provider failure or timeout. ``derive_thumbnail_url`` never performs I/O.
    """

    def store(self, blob: UploadedBlob, *, folder: str) -> StoredObject: ...

    def derive_thumbnail_url(
        self, descriptor: str, *, width: int = THUMBNAIL_SIZE, height: int = THUMBNAIL_SIZE
    ) -> str: ...

    def delete(self, descriptor: str) -> bool: ...


@dataclass
class InMemoryObjectStorage(ObjectStorageGateway):
    """Thread-safe in-memory storage used by unit tests.

    ``fail_store`` / ``fail_delete`` make the next calls raise
    :class:`StorageUnavailableError`, and every call is recorded so tests can
    assert that nothing reached the provider.
    """

    base_url: str = "memory://images"
    fail_store: bool = False
    fail_delete: bool = False
    objects: dict[str, bytes] = field(default_factory=dict)
    store_calls: list[str] = field(default_factory=list)
    delete_calls: list[str] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def store(self, blob: UploadedBlob, *, folder: str) -> StoredObject:
        with self._lock:
            descriptor = f"{folder}/{uuid4().hex}"
            self.store_calls.append(descriptor)
            if self.fail_store:
                raise StorageUnavailableError("Simulated storage outage")
            data = blob.stream.read()
            self.objects[descriptor] = data
            return StoredObject(
                descriptor=descriptor,
                url=f"{self.base_url}/{descriptor}",
                thumbnail_url=self.derive_thumbnail_url(descriptor),
                format=MIME_TO_FORMAT.get(blob.mime_type, "jpg"),
                bytes=len(data) or blob.size,
            )

    def derive_thumbnail_url(
        self, descriptor: str, *, width: int = THUMBNAIL_SIZE, height: int = THUMBNAIL_SIZE
    ) -> str:
        return f"{self.base_url}/c_fill,w_{width},h_{height}/{descriptor}.webp"

    def delete(self, descriptor: str) -> bool:
        with self._lock:
            self.delete_calls.append(descriptor)
            if self.fail_delete:
                raise StorageUnavailableError("Simulated storage outage")
            return self.objects.pop(descriptor, None) is not None
