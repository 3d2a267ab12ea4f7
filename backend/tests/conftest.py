"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Object storage and
password reset delivery are replaced by in-memory doubles on every test.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy.orm import scoped_session, sessionmaker

from imagehost.core.config import TestingConfig
from imagehost.core.extensions import db as _db  # Flask-SQLAlchemy instance
from imagehost.factory import create_app  # application factory under test
from imagehost.infra import storage as storage_ext
from imagehost.services._shared.ports import InMemoryObjectStorage, RecordingNotifier


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Pins secrets so JWT tests do not depend on the environment.
    - Avoids hitting external services (mail, filesystem storage).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret-key-0123456789abcdef0123"
    JWT_SECRET_KEY = "test-access-secret-0123456789abcdef01"
    JWT_REFRESH_SECRET_KEY = "test-refresh-secret-0123456789abcdef0"
    MAIL_SERVER = ""
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The fixture follows the SQLAlchemy 2.0 recipe for joining a session into
    an external transaction: a top-level transaction plus a SAVEPOINT are
    opened on the connection, and the session runs in
    ``join_transaction_mode="create_savepoint"`` so every ``commit()`` issued
    by a unit of work only releases an inner SAVEPOINT.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) SAVEPOINT per test (keeps inner RELEASEs from committing on SQLite)
    connection.begin_nested()

    # 3) Scoped session bound to the connection, autoflush off like the app's
    SessionFactory = sessionmaker(
        bind=connection,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )
    scoped = scoped_session(SessionFactory)

    # 4) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def storage(app):
    """Fresh in-memory object storage registered on the app."""
    gateway = InMemoryObjectStorage()
    storage_ext.init_app(app, gateway)
    return gateway


@pytest.fixture()
def notifier(app):
    """Fresh recording notifier used by the password reset endpoints."""
    recorder = RecordingNotifier()
    app.extensions["password_reset_notifier"] = recorder
    return recorder


@pytest.fixture()
def client(app, session, storage, notifier):
    """Return a Flask test client backed by the transactional session."""
    return app.test_client()


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
