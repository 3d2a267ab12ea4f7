"""Factory Boy definition for :class:`imagehost.models.user.User`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from imagehost.models.user import User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"
# Cheap hash; the production method is configurable.
HASH_METHOD = "pbkdf2:sha256:1000"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`User` instances.

    Pass ``password="..."`` to hash a specific plaintext; the default is
    :data:`DEFAULT_PASSWORD`.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"user{n}")
    phone_number = factory.Sequence(lambda n: f"555{n:07d}")
    password_hash = factory.LazyAttribute(
        lambda o: generate_password_hash(o.password, method=HASH_METHOD)
    )
