"""Engine, session factory and request-scoped sessions."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from numina_social.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Registers every table on Base.metadata.
import numina_social.models  # noqa: E402,F401


def use_sqlite_transactions(target: Engine) -> None:
    """Make SQLite transactions begin when the session begins.

    pysqlite only opens a transaction ahead of DML, so a SAVEPOINT issued
    first becomes the outer transaction and its RELEASE commits. Emitting
    BEGIN explicitly keeps nested work inside the enclosing unit of work.
    """

    @event.listens_for(target, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


_connect_args = (
    {"check_same_thread": False}
    if settings.effective_database_url.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
    connect_args=_connect_args,
)

if engine.dialect.name == "sqlite":
    use_sqlite_transactions(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a session that lives for one HTTP request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker[Session]:
    """Return the factory long-lived handlers use to open short sessions.

    A WebSocket outlives any single unit of work, so it opens a session per
    frame instead of holding one from :func:`get_db` for its whole life.
    """
    return SessionLocal


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)
