# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from numina_social.core.security import create_access_token
from numina_social.db.session import Base
from numina_social.db.session import get_db as app_get_session
from numina_social.db.session import get_session_factory
from numina_social.main import app as fastapi_app
from numina_social.models import User
from numina_social.realtime.registry import ConnectionRegistry

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(
    app: FastAPI, engine: Engine, db_session: Session
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    socket_sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_factory] = lambda: socket_sessions
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_factory, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with unique emails."""

    def _make_user(display_name: str | None = None) -> User:
        n = next(_USER_COUNTER)
        user = User(email=f"athlete{n}@example.com", display_name=display_name)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("Alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("Bob")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user(None)


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(bob: User) -> dict[str, str]:
    return auth_headers(bob)


@pytest.fixture()
def carol_headers(carol: User) -> dict[str, str]:
    return auth_headers(carol)


class FakeChannel:
    """In-memory stand-in for a WebSocket that records the frames written to it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[str] = []
        self.fail = fail
        self.closed = False
        self.close_code: int | None = None

    @property
    def closed_for_send(self) -> bool:
        return self.closed

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("transport broken")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed = True
        self.close_code = code

    def events(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent]

    def events_of(self, event_type: str) -> list[dict[str, Any]]:
        return [event for event in self.events() if event["type"] == event_type]


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture()
def make_channel() -> Callable[..., FakeChannel]:
    return FakeChannel
