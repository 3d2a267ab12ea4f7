"""End-to-end tests for the image gallery endpoints."""

from __future__ import annotations

import pytest

from tests.factories.image import ImageFactory
from tests.factories.user import UserFactory
from tests.helpers.assertions import assert_page, assert_problem
from tests.helpers.auth import bearer, issue_token
from tests.helpers.images import png_bytes, upload_file

BASE = "/api/v1/images"


@pytest.fixture()
def owner(client):
    """Persisted user plus auth headers; ids are captured before any request."""
    user = UserFactory()
    return user.id, bearer(issue_token(user.id))


def _upload(client, headers, title="Sunset", data=None, filename="sunset.png", mime="image/png"):
    return client.post(
        f"{BASE}/upload",
        data={"title": title, "image": upload_file(data or png_bytes(), filename, mime)},
        headers=headers,
        content_type="multipart/form-data",
    )


@pytest.mark.parametrize(
    "method, path",
    [("get", ""), ("get", "/stats"), ("post", "/upload"), ("delete", "/1"), ("put", "/rearrange/order")],
)
def test_image_routes_require_authentication(client, method, path):
    resp = getattr(client, method)(f"{BASE}{path}")

    assert_problem(resp, 401, "AUTH_ERROR", "Access token required")


def test_preflight_skips_authentication(client):
    resp = client.options(
        f"{BASE}/upload",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


def test_upload_assigns_consecutive_orders(client, storage, owner):
    user_id, headers = owner

    first = _upload(client, headers, title="  First  ")
    second = _upload(client, headers, title="Second")

    assert first.status_code == 201
    assert first.get_json()["message"] == "Image uploaded successfully"
    image = first.get_json()["image"]
    assert image["title"] == "First"
    assert image["userId"] == user_id
    assert image["order"] == 0
    assert image["format"] == "png"
    assert image["thumbnailUrl"].endswith(".webp")
    assert second.get_json()["image"]["order"] == 1
    assert len(storage.objects) == 2


def test_upload_requires_title_and_file(client, storage, owner):
    _, headers = owner

    no_title = _upload(client, headers, title="   ")
    no_file = client.post(
        f"{BASE}/upload",
        data={"title": "Lonely"},
        headers=headers,
        content_type="multipart/form-data",
    )

    assert_problem(no_title, 400, "bad_request", "Title is required")
    assert_problem(no_file, 400, "bad_request", "No image file provided")
    assert storage.store_calls == []


def test_upload_rejects_non_images_before_storage(client, storage, owner):
    _, headers = owner

    resp = _upload(client, headers, data=b"plain text", filename="notes.txt", mime="text/plain")

    assert_problem(resp, 400, "validation_error", "Only image files are allowed!")
    assert storage.store_calls == []


def test_upload_storage_outage_returns_500_without_row(client, storage, owner):
    _, headers = owner
    storage.fail_store = True

    resp = _upload(client, headers)
    listing = client.get(BASE, headers=headers)

    assert_problem(resp, 500, "storage_unavailable")
    assert listing.get_json()["total"] == 0


def test_bulk_upload_creates_all_images(client, owner):
    _, headers = owner
    ImageFactory(user_id=owner[0], order=4)

    resp = client.post(
        f"{BASE}/bulk-upload",
        data={
            "images": [upload_file(png_bytes(), "a.png"), upload_file(png_bytes(), "b.png")],
            "titles": ["Alpha", "Beta"],
        },
        headers=headers,
        content_type="multipart/form-data",
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["message"] == "2 images uploaded"
    assert [img["order"] for img in body["images"]] == [5, 6]


def test_bulk_upload_title_mismatch_stores_nothing(client, storage, owner):
    _, headers = owner

    resp = client.post(
        f"{BASE}/bulk-upload",
        data={
            "images": [upload_file(png_bytes(), "a.png"), upload_file(png_bytes(), "b.png")],
            "titles": ["Only one"],
        },
        headers=headers,
        content_type="multipart/form-data",
    )

    assert_problem(resp, 400, "validation_error", "Title count must match file count")
    assert storage.store_calls == []


def test_bulk_upload_overlong_title_stores_nothing(client, storage, owner):
    _, headers = owner

    resp = client.post(
        f"{BASE}/bulk-upload",
        data={
            "images": [upload_file(png_bytes(), "a.png"), upload_file(png_bytes(), "b.png")],
            "titles": ["ok", "x" * 101],
        },
        headers=headers,
        content_type="multipart/form-data",
    )
    listing = client.get(BASE, headers=headers).get_json()

    assert_problem(resp, 400, "validation_error", "Title cannot exceed 100 characters")
    assert storage.store_calls == []
    assert listing["total"] == 0


def test_list_images_paginates(client, owner):
    user_id, headers = owner
    for order in range(3):
        ImageFactory(user_id=user_id, order=order)
    ImageFactory()  # someone else's

    first = client.get(f"{BASE}?page=1&limit=2", headers=headers).get_json()
    second = client.get(f"{BASE}?page=2&limit=2", headers=headers).get_json()

    assert_page(first)
    assert first["total"] == 3
    assert first["totalPages"] == 2
    assert first["hasMore"] is True
    assert [img["order"] for img in first["images"]] == [0, 1]
    assert second["hasMore"] is False
    assert [img["order"] for img in second["images"]] == [2]


def test_stats(client, owner):
    user_id, headers = owner
    ImageFactory(user_id=user_id, bytes=1024 * 1024)
    ImageFactory(user_id=user_id, bytes=512 * 1024)

    body = client.get(f"{BASE}/stats", headers=headers).get_json()

    assert body["totalImages"] == 2
    assert body["totalSize"] == 1024 * 1024 + 512 * 1024
    assert body["totalSizeMB"] == pytest.approx(1.5)
    assert body["recentUploads"] == 2


def test_update_title(client, owner):
    user_id, headers = owner
    image_id = ImageFactory(user_id=user_id, title="Old").id

    resp = client.put(
        f"{BASE}/{image_id}",
        data={"title": "New"},
        headers=headers,
        content_type="multipart/form-data",
    )

    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Image updated successfully!"
    assert resp.get_json()["image"]["title"] == "New"


def test_foreign_image_looks_missing(client, owner):
    _, headers = owner
    foreign_id = ImageFactory().id

    update = client.put(
        f"{BASE}/{foreign_id}",
        data={"title": "Mine now"},
        headers=headers,
        content_type="multipart/form-data",
    )
    delete = client.delete(f"{BASE}/{foreign_id}", headers=headers)

    assert_problem(update, 404, "not_found", "Image not found")
    assert_problem(delete, 404, "not_found", "Image not found")


def test_delete_image(client, storage, owner):
    _, headers = owner
    created = _upload(client, headers).get_json()["image"]

    resp = client.delete(f"{BASE}/{created['id']}", headers=headers)
    again = client.delete(f"{BASE}/{created['id']}", headers=headers)

    assert resp.get_json()["message"] == "Image deleted successfully!"
    assert storage.delete_calls == [created["publicId"]]
    assert_problem(again, 404, "not_found")


def test_bulk_delete_counts_only_owned_images(client, owner):
    user_id, headers = owner
    mine = [ImageFactory(user_id=user_id).id for _ in range(2)]
    foreign = ImageFactory().id

    resp = client.post(f"{BASE}/bulk-delete", json={"imageIds": [*mine, foreign]}, headers=headers)
    none_left = client.post(f"{BASE}/bulk-delete", json={"imageIds": mine}, headers=headers)
    empty = client.post(f"{BASE}/bulk-delete", json={"imageIds": []}, headers=headers)

    assert resp.status_code == 200
    assert resp.get_json() == {"message": "2 images deleted successfully", "deletedCount": 2}
    assert_problem(none_left, 404, "not_found", "No images found")
    assert_problem(empty, 400, "validation_error")


def test_rearrange(client, owner):
    user_id, headers = owner
    a, b, c = (ImageFactory(user_id=user_id, order=i).id for i in range(3))

    resp = client.put(f"{BASE}/rearrange/order", json={"imageOrder": [c, a, b]}, headers=headers)
    listing = client.get(BASE, headers=headers).get_json()

    assert resp.get_json()["message"] == "Images rearranged successfully"
    assert [img["id"] for img in listing["images"]] == [c, a, b]


def test_rearrange_with_foreign_id_changes_nothing(client, owner):
    user_id, headers = owner
    a, b = (ImageFactory(user_id=user_id, order=i).id for i in range(2))
    foreign = ImageFactory().id

    resp = client.put(
        f"{BASE}/rearrange/order", json={"imageOrder": [b, foreign, a]}, headers=headers
    )
    listing = client.get(BASE, headers=headers).get_json()

    assert_problem(resp, 403, "forbidden", "Some images do not belong to user")
    assert [img["id"] for img in listing["images"]] == [a, b]
