"""
Engine and session handling for the planner database.

One engine and one session factory are kept per process. Services open
their own transaction with ``session_scope()`` unless the caller passes a
session in, so a whole planning pass can share one snapshot.
"""

from typing import Optional
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..utils.config import get_config
from ..models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Turn on foreign keys and WAL for SQLite connections."""
    if "sqlite" not in type(dbapi_connection).__module__:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build an engine for ``database_url`` (default: the configured URL).

    In-memory SQLite gets a StaticPool so every session sees the same
    database; file-based SQLite gets a generous lock timeout.
    """
    if database_url is None:
        config = get_config()
        if config.database_url.startswith("sqlite:///"):
            config.ensure_directories()
        database_url = config.database_url

    logger.info(f"Creating database engine: {database_url}")

    if ":memory:" in database_url or "mode=memory" in database_url:
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def get_engine() -> Engine:
    """Process-wide engine, created on first use."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Process-wide session factory bound to ``get_engine()``."""
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _SessionFactory


def configure_database(database_url: Optional[str] = None) -> Engine:
    """
    Point the process at another database.

    Disposes the current engine (if any) and rebuilds engine and session
    factory for ``database_url``. Passing None falls back to the configured
    URL.

    Returns:
        The new engine
    """
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = create_database_engine(database_url)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing tables. Existing tables are left alone."""
    if engine is None:
        engine = get_engine()

    # Registers every table on Base.metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("Database tables initialized")


@contextmanager
def session_scope():
    """
    Transactional scope: commit on success, roll back on error, always close.

    Example:
        with session_scope() as session:
            session.add(BatchType(code="BAKE", name="Bake Cakes"))
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
