"""Image endpoints: gallery listing, uploads, edits, deletes, and ordering."""

from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import verify_jwt_in_request

from imagehost.api.deps import (
    current_user_id,
    get_image_service,
    json_response,
    many_files,
    parse_pagination,
    single_file,
    timing,
)
from imagehost.core.errors import BadRequest
from imagehost.schemas import (
    BulkDeleteSchema,
    ImagePageSchema,
    ImageSchema,
    ImageStatsSchema,
    ImageTitleSchema,
    RearrangeSchema,
)

bp = Blueprint("images", __name__)

image_schema = ImageSchema()
images_schema = ImageSchema(many=True)
page_schema = ImagePageSchema()
stats_schema = ImageStatsSchema()
title_schema = ImageTitleSchema()
bulk_delete_schema = BulkDeleteSchema()
rearrange_schema = RearrangeSchema()


@bp.before_request
def _authenticate() -> None:
    """Every image route requires a bearer access token."""
    if request.method != "OPTIONS":
        verify_jwt_in_request()


@bp.get("")
@timing
def list_images():
    page, limit = parse_pagination()
    user_id = current_user_id()
    result = get_image_service(user_id).list_images(user_id, page=page, page_size=limit)
    return json_response(page_schema.dump(result))


@bp.get("/stats")
@timing
def image_stats():
    user_id = current_user_id()
    stats = get_image_service(user_id).get_image_stats(user_id)
    return json_response(stats_schema.dump(stats))


@bp.post("/upload")
@timing
def upload_image():
    """Upload one image (multipart ``image`` + ``title``)."""

    title = request.form.get("title", "")
    if not title.strip():
        raise BadRequest("Title is required")
    title = title_schema.load({"title": title.strip()})["title"]
    blob = single_file("image", required=True)
    user_id = current_user_id()
    image = get_image_service(user_id).upload_image(user_id, blob, title)
    return json_response(
        {"message": "Image uploaded successfully", "image": image_schema.dump(image)},
        status=201,
    )


@bp.post("/bulk-upload")
@timing
def bulk_upload_images():
    """Upload several images (multipart ``images[]`` + matching ``titles[]``)."""

    blobs = many_files("images")
    titles = request.form.getlist("titles")
    user_id = current_user_id()
    images = get_image_service(user_id).bulk_upload_images(user_id, blobs, titles)
    return json_response(
        {"message": f"{len(images)} images uploaded", "images": images_schema.dump(images)},
        status=201,
    )


@bp.put("/<int:image_id>")
@timing
def update_image(image_id: int):
    """Change the title and/or replace the binary of one image."""

    form = title_schema.load({k: v for k, v in request.form.items() if k == "title"})
    blob = single_file("image", required=False)
    user_id = current_user_id()
    image = get_image_service(user_id).update_image(
        image_id, user_id, title=form.get("title"), blob=blob
    )
    return json_response({"message": "Image updated successfully!", "image": image_schema.dump(image)})


@bp.delete("/<int:image_id>")
@timing
def delete_image(image_id: int):
    user_id = current_user_id()
    get_image_service(user_id).delete_image(image_id, user_id)
    return json_response({"message": "Image deleted successfully!"})


@bp.post("/bulk-delete")
@timing
def bulk_delete_images():
    data = bulk_delete_schema.load(request.get_json(silent=True) or {})
    user_id = current_user_id()
    deleted = get_image_service(user_id).bulk_delete_images(data["image_ids"], user_id)
    return json_response(
        {"message": f"{deleted} images deleted successfully", "deletedCount": deleted}
    )


@bp.put("/rearrange/order")
@timing
def rearrange_images():
    data = rearrange_schema.load(request.get_json(silent=True) or {})
    user_id = current_user_id()
    get_image_service(user_id).rearrange_images(user_id, data["image_order"])
    return json_response({"message": "Images rearranged successfully"})
