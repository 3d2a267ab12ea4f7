"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from imagehost.repositories.base import BaseRepository, paginate_select
from imagehost.repositories.image import ImageAggregate, ImageRepository
from imagehost.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "paginate_select",
    "ImageAggregate",
    "ImageRepository",
    "UserRepository",
]
