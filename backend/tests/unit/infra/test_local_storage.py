"""Tests for the filesystem object storage adapter."""

from __future__ import annotations

import threading

import pytest
from PIL import Image as PILImage

from imagehost.infra.storage.local_storage import LocalObjectStorage, secure_folder
from imagehost.services._shared.errors import InvalidUploadError, StorageUnavailableError
from tests.helpers.images import make_blob, png_bytes


@pytest.fixture()
def local(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path, "https://cdn.example.com/media/", timeout=2)


def test_store_writes_original_and_thumbnail(local, tmp_path):
    data = png_bytes(640, 480)
    stored = local.store(make_blob(data, filename="../../My Holiday.PNG"), folder="images/7")

    assert stored.descriptor.startswith("images/7/")
    assert stored.descriptor.endswith("-My_Holiday.png")
    assert stored.url == f"https://cdn.example.com/media/{stored.descriptor}"
    assert (stored.format, stored.bytes, stored.width, stored.height) == ("png", len(data), 640, 480)
    assert (tmp_path / stored.descriptor).read_bytes() == data

    thumb_key = stored.thumbnail_url.removeprefix("https://cdn.example.com/media/")
    with PILImage.open(tmp_path / thumb_key) as thumb:
        assert thumb.size == (300, 300)
        assert thumb.format == "WEBP"


def test_store_rejects_non_images(local):
    with pytest.raises(InvalidUploadError, match="Only image files are allowed!"):
        local.store(make_blob(b"%PDF-1.4 not an image"), folder="images/1")


def test_delete_reports_whether_blob_existed(local, tmp_path):
    stored = local.store(make_blob(png_bytes()), folder="images/1")
    assert local.delete(stored.descriptor) is True
    assert not (tmp_path / stored.descriptor).exists()
    assert local.delete(stored.descriptor) is False


def test_descriptors_cannot_escape_root(local):
    with pytest.raises(StorageUnavailableError):
        local.delete("../../etc/passwd")


def test_thumbnail_url_is_pure(local):
    assert (
        local.derive_thumbnail_url("images/1/abc.png", width=100, height=50)
        == "https://cdn.example.com/media/thumbnails/100x50/images/1/abc.webp"
    )


def test_slow_provider_times_out(tmp_path, monkeypatch):
    slow = LocalObjectStorage(tmp_path, "/media", timeout=0.05)
    release = threading.Event()
    monkeypatch.setattr(slow, "_delete", lambda descriptor: release.wait(2))
    try:
        with pytest.raises(StorageUnavailableError, match="timed out"):
            slow.delete("images/1/a.png")
    finally:
        release.set()


def test_store_finishing_after_timeout_is_discarded(tmp_path, monkeypatch):
    slow = LocalObjectStorage(tmp_path, "/media", timeout=0.05)
    release = threading.Event()
    real_store = slow._store
    finished = []

    def delayed_store(blob, folder):
        release.wait(2)
        stored = real_store(blob, folder)
        finished.append(stored)
        return stored

    monkeypatch.setattr(slow, "_store", delayed_store)
    with pytest.raises(StorageUnavailableError, match="timed out"):
        slow.store(make_blob(png_bytes()), folder="images/1")

    release.set()
    slow.close()

    assert len(finished) == 1
    assert not (tmp_path / finished[0].descriptor).exists()
    assert not [p for p in tmp_path.rglob("*") if p.is_file()]


def test_decompression_bomb_is_rejected_as_invalid_upload(local, monkeypatch):
    monkeypatch.setattr(PILImage, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(InvalidUploadError, match="Only image files are allowed!"):
        local.store(make_blob(png_bytes(64, 48)), folder="images/1")


def test_secure_folder():
    assert secure_folder("../images//7/") == "images/7"
