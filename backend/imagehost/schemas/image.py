"""Image-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

TITLE_LENGTH = validate.Length(min=1, max=100, error="Title must be 1-100 characters")


class ImageSchema(Schema):
    """Public image representation."""

    id = fields.Integer(required=True)
    user_id = fields.Integer(data_key="userId", required=True)
    title = fields.String(required=True)
    url = fields.String(required=True)
    thumbnail_url = fields.String(data_key="thumbnailUrl", allow_none=True)
    public_id = fields.String(data_key="publicId", required=True)
    format = fields.String(required=True)
    bytes = fields.Integer(required=True)
    width = fields.Integer(allow_none=True)
    height = fields.Integer(allow_none=True)
    original_name = fields.String(data_key="originalName", allow_none=True)
    order = fields.Integer(required=True)
    created_at = fields.DateTime(data_key="createdAt", required=True)
    updated_at = fields.DateTime(data_key="updatedAt", required=True)


class ImagePageSchema(Schema):
    images = fields.List(fields.Nested(ImageSchema), required=True)
    total = fields.Integer(required=True)
    total_pages = fields.Integer(data_key="totalPages", required=True)
    has_more = fields.Boolean(data_key="hasMore", required=True)
    page = fields.Integer(required=True)
    limit = fields.Integer(required=True)


class ImageStatsSchema(Schema):
    total_images = fields.Integer(data_key="totalImages", required=True)
    total_size_bytes = fields.Integer(data_key="totalSize", required=True)
    total_size_mb = fields.Float(data_key="totalSizeMB", required=True)
    recent_uploads = fields.Integer(data_key="recentUploads", required=True)


class ImageTitleSchema(Schema):
    """Multipart form fields accompanying a single upload or an update."""

    title = fields.String(validate=TITLE_LENGTH)


class BulkDeleteSchema(Schema):
    image_ids = fields.List(
        fields.Integer(strict=False),
        data_key="imageIds",
        required=True,
        validate=validate.Length(min=1, error="imageIds must be a non-empty array"),
    )


class RearrangeSchema(Schema):
    image_order = fields.List(
        fields.Integer(strict=False),
        data_key="imageOrder",
        required=True,
    )
