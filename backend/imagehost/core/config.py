"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

_INSECURE_DEFAULTS: Final[frozenset[str]] = frozenset(
    {"CHANGE_ME", "CHANGE_ME_JWT", "CHANGE_ME_JWT_REFRESH"}
)


# Load .env during development (no-op when the file is absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Must be overridden in production.
    JWT_SECRET_KEY: str
        Signing key for access tokens (``flask-jwt-extended``).
    JWT_REFRESH_SECRET_KEY: str
        Signing key for refresh tokens. Kept separate from ``JWT_SECRET_KEY``
        so that leaking one does not compromise the other.
    JWT_ACCESS_TOKEN_EXPIRES: timedelta
        Access token lifetime (minutes class).
    JWT_REFRESH_TOKEN_EXPIRES: timedelta
        Refresh token lifetime (days class).
    PASSWORD_HASH_METHOD: str
        Method string handed to :func:`werkzeug.security.generate_password_hash`.
    PASSWORD_RESET_EXPIRES: timedelta
        Lifetime of a password reset token.
    FRONTEND_URL: str
        Base URL of the single-page application, used to build reset links.
    UPLOAD_FOLDER: str
        Filesystem root of the local object storage adapter.
    MEDIA_BASE_URL: str
        Public URL prefix under which stored blobs are reachable.
    MAX_IMAGE_BYTES: int
        Per-file upload limit (5 MB).
    MAX_CONTENT_LENGTH: int
        Whole-request limit enforced by Werkzeug before parsing multipart bodies.
    STORAGE_TIMEOUT_SECONDS: float
        Upper bound for a single object-storage call.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SQLALCHEMY_ENGINE_OPTIONS: dict
        Engine options; bounds connection checkout time.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter expression applied to the login endpoint.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "CHANGE_ME_JWT_REFRESH")
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=env_int("JWT_ACCESS_TOKEN_MINUTES", 15))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=env_int("JWT_REFRESH_TOKEN_DAYS", 7))
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
    PASSWORD_RESET_EXPIRES = timedelta(hours=1)
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Mail (password reset delivery)
    MAIL_SERVER = os.getenv("MAIL_SERVER", "")
    MAIL_PORT = env_int("MAIL_PORT", 587)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_USE_TLS = env_bool("MAIL_USE_TLS", True)
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@imagehost.local")
    MAIL_TIMEOUT_SECONDS = env_int("MAIL_TIMEOUT_SECONDS", 10)
    EXPOSE_RESET_LINK = False

    # Object storage / uploads
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.abspath("./uploads"))
    MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "/media")
    MAX_IMAGE_BYTES = 5 * 1024 * 1024
    MAX_BULK_FILES = 100
    MAX_CONTENT_LENGTH = MAX_IMAGE_BYTES * MAX_BULK_FILES
    STORAGE_TIMEOUT_SECONDS = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "10"))

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & rate limiting
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_ENABLED = True

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode and returns the password reset link in the
    forgot-password response instead of mailing it.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes
    EXPOSE_RESET_LINK = True


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses a cheap password hash so the suite stays fast.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    RATELIMIT_ENABLED = False
    EXPOSE_RESET_LINK = True
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control. Connection checkout is bounded so a
    saturated pool fails fast instead of hanging a worker.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_timeout": 10}
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def check_secrets(config: Mapping[str, object]) -> None:
    """Refuse to boot a non-debug, non-testing app with placeholder secrets.

    :param config: Loaded Flask configuration mapping.
    :raises RuntimeError: When a signing secret still holds its placeholder.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    for key in ("SECRET_KEY", "JWT_SECRET_KEY", "JWT_REFRESH_SECRET_KEY"):
        if config.get(key) in _INSECURE_DEFAULTS:
            raise RuntimeError(f"{key} must be set in production")
    if config.get("JWT_SECRET_KEY") == config.get("JWT_REFRESH_SECRET_KEY"):
        raise RuntimeError("JWT_SECRET_KEY and JWT_REFRESH_SECRET_KEY must differ")
