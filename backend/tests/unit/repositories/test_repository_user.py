"""Unit tests for UserRepository."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from imagehost.models.user import User
from imagehost.repositories.user import UserRepository
from imagehost.services._shared.errors import UserAlreadyExistsError
from tests.factories.user import UserFactory

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_create_and_get_by_email_case_insensitive(self, repo, session):
        user = repo.create(
            username="alice",
            email="Alice@Example.com",
            phone_number="5550001111",
            password_hash="hashed",
        )
        assert user.id is not None

        fetched = repo.get_by_email("  ALICE@example.COM ")
        assert fetched is not None
        assert fetched.id == user.id
        assert repo.exists_by_email("alice@example.com")
        assert not repo.exists_by_email("nobody@example.com")

    def test_create_duplicate_email_raises(self, repo, session):
        UserFactory(email="bob@example.com")
        with pytest.raises(UserAlreadyExistsError):
            repo.create(
                username="bobby",
                email="BOB@example.com",
                phone_number="5550002222",
                password_hash="hashed",
            )

    def test_update_whitelist_and_none_clears(self, repo, session):
        user = UserFactory(refresh_token="rt", refresh_token_expires_at=NOW)
        repo.update(user, username="renamed", refresh_token=None)
        assert user.username == "renamed"
        assert user.refresh_token is None

        with pytest.raises(ValueError):
            repo.update(user, id=999)

    def test_find_by_reset_token_hash_honours_expiry(self, repo, session):
        user = UserFactory(
            reset_password_token_hash="a" * 64,
            reset_password_expires_at=NOW + timedelta(hours=1),
        )
        assert repo.find_by_reset_token_hash("a" * 64, NOW).id == user.id
        assert repo.find_by_reset_token_hash("a" * 64, NOW + timedelta(hours=2)) is None
        assert repo.find_by_reset_token_hash("b" * 64, NOW) is None

    def test_find_by_active_refresh_token(self, repo, session):
        user = UserFactory()
        repo.set_refresh_token(user, "rt-1", NOW + timedelta(days=7))

        assert repo.find_by_active_refresh_token(user.id, "rt-1", NOW).id == user.id
        assert repo.find_by_active_refresh_token(user.id, "rt-other", NOW) is None
        assert repo.find_by_active_refresh_token(user.id, "rt-1", NOW + timedelta(days=8)) is None

        repo.clear_refresh_token(user)
        assert repo.find_by_active_refresh_token(user.id, "rt-1", NOW) is None

    def test_rotate_refresh_token_is_single_use(self, repo, session):
        user = UserFactory()
        repo.set_refresh_token(user, "rt-1", NOW + timedelta(days=7))
        user_id = user.id

        assert repo.rotate_refresh_token(user_id, "rt-1", "rt-2", NOW + timedelta(days=7), NOW)
        # The same old token loses the second time around.
        assert not repo.rotate_refresh_token(user_id, "rt-1", "rt-3", NOW + timedelta(days=7), NOW)

        stored = session.execute(select(User.refresh_token).where(User.id == user_id)).scalar_one()
        assert stored == "rt-2"
        # Cached identity is refreshed from the database.
        assert repo.get(user_id).refresh_token == "rt-2"

    def test_rotate_refuses_expired_token(self, repo, session):
        user = UserFactory()
        repo.set_refresh_token(user, "rt-1", NOW - timedelta(seconds=1))
        assert not repo.rotate_refresh_token(user.id, "rt-1", "rt-2", NOW + timedelta(days=7), NOW)
