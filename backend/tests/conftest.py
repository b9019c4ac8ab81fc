"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Services commit
through their Unit of Work; with ``join_transaction_mode="create_savepoint"``
those commits only release a SAVEPOINT and the outer transaction is rolled
back once the test ends.
"""

from __future__ import annotations

import os
from datetime import timedelta

import pytest
from advent_auth.core.config import TestingConfig
from advent_auth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from advent_auth.core.security import get_components
from advent_auth.factory import create_app  # application factory under test
from advent_auth.infra.jwt import JWTTokenCodec, SigningKey
from advent_auth.services._shared.ports import (
    InMemoryLoginStateStore,
    InMemoryRefreshTokenStore,
    TokenKind,
)
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker
from tests.helpers.clock import FrozenClock


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
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
    """Keep a dedicated DBAPI connection open for the whole session.

    Yields
    ------
    sqlalchemy.engine.Connection
        Connection reused by the per-test transactions.

    Notes
    -----
    pysqlite defers ``BEGIN`` on its own, which breaks SAVEPOINT nesting.
    The driver is put in autocommit mode and SQLAlchemy emits ``BEGIN``.
    """
    engine = db.engine
    conn = engine.connect()
    if engine.dialect.name == "sqlite":
        conn.connection.driver_connection.isolation_level = None

        @event.listens_for(conn, "begin")
        def _do_begin(c):
            c.exec_driver_sql("BEGIN")

    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session joined to a per-test outer transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; everything it did is
        rolled back after each test.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session; commit()/rollback() only touch SAVEPOINTs
    SessionFactory = sessionmaker(
        bind=connection, join_transaction_mode="create_savepoint", future=True
    )
    scoped = scoped_session(SessionFactory)

    # 3) Monkey-patch db.session so app code uses this scoped session
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


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Auth collaborators --------------------------------------------------------
@pytest.fixture
def clock():
    """Controllable UTC clock starting at a fixed instant."""
    return FrozenClock()


@pytest.fixture
def codec(app, clock):
    """Token codec signing with the testing secret and driven by ``clock``."""
    return JWTTokenCodec(
        key=SigningKey.from_text(app.config["JWT_SECRET_KEY"]),
        clock=clock,
        ttls={
            TokenKind.ACCESS: timedelta(seconds=app.config["ACCESS_TOKEN_TTL_SECONDS"]),
            TokenKind.REFRESH: timedelta(seconds=app.config["REFRESH_TOKEN_TTL_SECONDS"]),
            TokenKind.TEMP: timedelta(seconds=app.config["TEMP_TOKEN_TTL_SECONDS"]),
        },
    )


@pytest.fixture
def components(app, db, codec, monkeypatch):
    """The app's auth components with fresh stores and the test codec.

    The application object lives for the whole session, so per-test state
    (stores, clock) is swapped in here and restored afterwards.
    """
    comps = get_components()
    monkeypatch.setattr(comps, "codec", codec)
    monkeypatch.setattr(comps.authenticator, "codec", codec)
    monkeypatch.setattr(comps, "refresh_store", InMemoryRefreshTokenStore())
    monkeypatch.setattr(comps, "login_states", InMemoryLoginStateStore())
    monkeypatch.setattr(comps, "clients", dict(comps.clients))
    return comps


@pytest.fixture
def client(app, components, session):
    """Flask test client over the transactional session and fresh auth stores."""
    return app.test_client()
