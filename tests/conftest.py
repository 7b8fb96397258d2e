"""Shared fixtures: isolated SQLite databases, fake clock, API client."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from backend.app.core.security import create_access_token
from backend.app.db.base import Base
from backend.app.db.session import get_db, get_session_factory
from backend.app.main import app
from backend.app.models.bookmark import Bookmark  # noqa: F401
from backend.app.models.idea import Idea  # noqa: F401
from backend.app.models.user_stats import UserStats  # noqa: F401
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)

AuthHeader = Callable[..., dict[str, str]]


class FakeClock:
    """Deterministic clock; advance it explicitly."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    """In-memory SQLite shared by every session in the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def file_engine(tmp_path: Path) -> Iterator[Engine]:
    """File-backed SQLite so concurrent threads each get a real connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'engagement.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client(session_factory: sessionmaker[Session]) -> Iterator[TestClient]:
    """TestClient wired to the in-memory database (lifespan not run)."""

    def _get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_header(user_id: str, **claims: bool) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, **claims)}"}


@pytest.fixture()
def auth() -> AuthHeader:
    """Build an ``Authorization`` header for a user with optional role claims."""
    return auth_header
