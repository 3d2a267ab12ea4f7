"""Tests for environment-based configuration selection and secret checks."""

from __future__ import annotations

import pytest

from imagehost.core.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    check_secrets,
    env_bool,
    get_config,
)


@pytest.mark.parametrize(
    "value, expected",
    [("production", ProductionConfig), (" Testing ", TestingConfig), ("unknown", DevelopmentConfig)],
)
def test_get_config_by_app_env(monkeypatch, value, expected):
    monkeypatch.setenv("APP_ENV", value)
    assert get_config() is expected


def test_env_bool(monkeypatch):
    monkeypatch.setenv("FLAG", "Yes")
    assert env_bool("FLAG") is True
    monkeypatch.setenv("FLAG", "0")
    assert env_bool("FLAG", True) is False
    monkeypatch.delenv("FLAG")
    assert env_bool("FLAG", True) is True


def test_production_refuses_placeholder_secrets():
    cfg = {
        "DEBUG": False,
        "TESTING": False,
        "SECRET_KEY": "real",
        "JWT_SECRET_KEY": "CHANGE_ME_JWT",
        "JWT_REFRESH_SECRET_KEY": "other",
    }
    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        check_secrets(cfg)


def test_production_requires_distinct_jwt_secrets():
    cfg = {"SECRET_KEY": "a", "JWT_SECRET_KEY": "same", "JWT_REFRESH_SECRET_KEY": "same"}
    with pytest.raises(RuntimeError, match="must differ"):
        check_secrets(cfg)
    check_secrets({**cfg, "JWT_REFRESH_SECRET_KEY": "different"})


def test_debug_and_testing_skip_secret_checks():
    check_secrets({"TESTING": True, "SECRET_KEY": "CHANGE_ME"})
    check_secrets({"DEBUG": True, "SECRET_KEY": "CHANGE_ME"})
