"""Factory Boy definition for :class:`imagehost.models.image.Image`."""

from __future__ import annotations

import factory

from imagehost.models.image import Image
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class ImageFactory(BaseFactory):
    """
    Build persisted :class:`Image` rows without touching object storage.

    Notes
    -----
    - ``user_id`` creates a fresh owner unless one is passed explicitly.
    - ``created_at`` may be overridden to control listing ties and the
      recent-uploads window.
    """

    class Meta:
        model = Image

    id = None
    user_id = factory.LazyFunction(lambda: UserFactory().id)
    title = factory.Sequence(lambda n: f"Image {n}")
    public_id = factory.Sequence(lambda n: f"images/test/{n:08x}")
    url = factory.LazyAttribute(lambda o: f"memory://images/{o.public_id}")
    thumbnail_url = factory.LazyAttribute(
        lambda o: f"memory://images/c_fill,w_300,h_300/{o.public_id}.webp"
    )
    format = "png"
    bytes = 1024
    width = 640
    height = 480
    original_name = factory.LazyAttribute(lambda o: f"{o.title.lower().replace(' ', '-')}.png")
    order = 0
