"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from imagehost.models.user import User


def _user(**overrides) -> User:
    fields = {
        "username": "tester",
        "email": "tester@example.com",
        "phone_number": "5551234567",
        "password_hash": "x",
    }
    fields.update(overrides)
    return User(**fields)


class TestUser:
    def test_email_normalized_and_unique(self, session):
        u1 = _user(email="  Alice@Example.COM ")
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        session.add(_user(email="alice@example.com", username="alice2"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_rejects_malformed_email(self):
        with pytest.raises(ValueError, match="Email"):
            _user(email="not-an-email")

    @pytest.mark.parametrize("username", ["ab", "x" * 51, "   "])
    def test_username_length(self, username):
        with pytest.raises(ValueError):
            _user(username=username)

    def test_username_trimmed(self):
        assert _user(username="  carol  ").username == "carol"

    @pytest.mark.parametrize("phone", ["123456789", "1234567890123456", "555-123-4567"])
    def test_phone_number_requires_10_to_15_digits(self, phone):
        with pytest.raises(ValueError, match="Phone"):
            _user(phone_number=phone)

    def test_session_fields_default_to_absent(self, session):
        u = _user()
        session.add(u)
        session.flush()
        assert u.refresh_token is None
        assert u.refresh_token_expires_at is None
        assert u.reset_password_token_hash is None
        assert u.created_at is not None


def test_repr_never_exposes_secrets():
    user = _user(email="Repr@Example.com", refresh_token="secret-refresh")

    text = repr(user)

    assert text == "<User id=None email='repr@example.com'>"
    assert "secret-refresh" not in text
