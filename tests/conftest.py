# tests/conftest.py
import os

# Must be set before tracker.core.config is imported anywhere.
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker as _sessionmaker
from sqlalchemy.pool import StaticPool

# -----------------------------------------------------------------------------
# IMPORTANT: all ORM tables must be registered in metadata before create_all
# -----------------------------------------------------------------------------
import tracker.models.registry  # noqa: F401
from tracker.core.db import get_db, make_engine
from tracker.main import app
from tracker.models.base import Base


@pytest.fixture()
def engine():
    """
    Fresh in-memory SQLite per test.

    StaticPool keeps exactly one DBAPI connection, so the test session and the
    sessions opened by API requests see the same database.
    """
    eng = make_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return _sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )


@pytest.fixture()
def db(session_factory):
    """
    Plain session, no outer transaction.

    Services never commit: tests call db.commit() after the happy path and
    db.rollback() after an expected domain error, the same way the API's
    `with db.begin():` block does.
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def client(session_factory):
    """TestClient with get_db bound to the per-test engine.

    Setup data written through `db` must be committed before the request.
    """

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)
