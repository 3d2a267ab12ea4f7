"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load


class PaginationQuerySchema(Schema):
    """Parse ``page``/``limit`` query parameters.

    Out-of-range numbers are clamped rather than rejected: ``page`` to
    ``>= 1`` and ``limit`` to ``[1, max_limit]``.
    """

    class Meta:
        unknown = EXCLUDE

    def __init__(self, *, default_limit: int = 20, max_limit: int = 50, **kwargs: Any) -> None:
        self._default_limit = default_limit
        self._max_limit = max_limit
        super().__init__(**kwargs)

    page = fields.Integer(load_default=1)
    limit = fields.Integer()

    @post_load
    def apply_defaults(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        limit = data.get("limit", self._default_limit)
        data["limit"] = min(max(limit, 1), self._max_limit)
        data["page"] = max(data.get("page", 1), 1)
        return data
