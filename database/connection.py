"""
Database engine and session management.

Each application state owns its own engine. The default URL is an in-memory
SQLite database, so the whole store lives and dies with the process.
"""
from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .models import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on ON DELETE CASCADE / SET NULL handling for SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite needs a single shared connection, otherwise every
    session would see its own empty database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(database_url, pool_pre_ping=True, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine):
    """Initialize database by creating all tables."""
    Base.metadata.create_all(bind=engine)


def get_db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.
    Used by the FastAPI dependency in the API layer.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context(session_factory: sessionmaker, commit: bool = True):
    """
    Context manager for database session.
    Use for non-FastAPI contexts (seeding, scripts, tests).
    """
    db = session_factory()
    try:
        yield db
        if commit:
            db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
