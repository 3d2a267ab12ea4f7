"""Tests for the Image model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from imagehost.models.image import Image
from tests.factories.image import ImageFactory
from tests.factories.user import UserFactory


class TestImage:
    def test_title_trimmed_and_bounded(self):
        img = Image(title="  Sunset  ")
        assert img.title == "Sunset"
        with pytest.raises(ValueError, match="Title"):
            Image(title="   ")
        with pytest.raises(ValueError, match="100"):
            Image(title="x" * 101)

    def test_format_lowercased_and_whitelisted(self):
        assert Image(format="PNG").format == "png"
        with pytest.raises(ValueError, match="Unsupported"):
            Image(format="tiff")

    def test_original_name_is_clipped(self):
        assert len(Image(original_name="a" * 400).original_name) == 255

    def test_public_id_unique(self, session):
        first = ImageFactory()
        with pytest.raises(IntegrityError):
            ImageFactory(user_id=first.user_id, public_id=first.public_id)
        session.rollback()

    def test_bytes_must_be_positive(self, session):
        user = UserFactory()
        with pytest.raises(IntegrityError):
            ImageFactory(user_id=user.id, bytes=0)
        session.rollback()

    def test_order_defaults_to_zero(self, session):
        user = UserFactory()
        img = Image(
            user_id=user.id,
            title="t",
            public_id="images/p",
            url="u",
            format="png",
            bytes=1,
        )
        session.add(img)
        session.flush()
        assert img.order == 0
