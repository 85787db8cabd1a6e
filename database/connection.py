"""
Clinic Staffing Monitor - Database Connection

Engine and session lifecycle for the scrape cache and job records.

The database is optional. Without DATABASE_URL the service always scrapes
live and the scheduler runs without job tracking, so callers check
is_database_configured() (or the result of init_database()) before building
the SQL-backed stores.

Usage:
    from database.connection import get_session, init_database

    if init_database():
        with get_session() as session:
            entries = ClinicCacheRepository(session).find_many(names)
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import get_settings
from database.models import Base


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


# =============================================================================
# Engine Management
# =============================================================================

def is_database_configured() -> bool:
    return get_settings().is_database_configured


def create_engine_for_url(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the cache database.

    Server databases get the configured pool and pre-ping; SQLite keeps
    SQLAlchemy's default pool since it has no server connections to manage.
    """
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo)

    settings = get_settings()
    return create_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,
        echo=echo,
    )


def get_engine() -> Engine:
    """
    Lazily create the process-wide engine.

    Raises:
        RuntimeError: If DATABASE_URL is not configured
    """
    global _engine

    if _engine is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is not configured")

        _engine = create_engine_for_url(settings.database_url, echo=settings.database_echo)
        logger.info(
            "Cache database engine created",
            extra={
                "url": _engine.url.render_as_string(hide_password=True),
                "pool_size": settings.database_pool_size,
            },
        )

    return _engine


def close_engine() -> None:
    """Dispose of the engine and forget the session factory bound to it."""
    global _engine, _session_factory

    if _engine is None:
        return

    logger.info("Closing database engine")
    _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory() -> sessionmaker:
    global _session_factory

    if _session_factory is None:
        # Stores hand detached values back to callers after commit
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


# =============================================================================
# Session Management
# =============================================================================

@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Session scoped to a with-block.

    Rolls back if the block raises and always closes. Callers commit.
    """
    session = get_session_factory()()
    try:
        yield session
    except Exception:
        logger.error("Database session error, rolling back")
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================================
# Initialization
# =============================================================================

def ping(engine: Engine) -> None:
    """Round-trip a trivial query; raises if the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1")).fetchone()


def init_database() -> bool:
    """
    Connect to the cache database if one is configured.

    Development creates missing tables directly; other environments are
    expected to have run the Alembic migrations.

    Returns:
        True when the database is configured and reachable. False means the
        caller should run without persistence.
    """
    if not is_database_configured():
        logger.info("No database configured, caching disabled")
        return False

    try:
        engine = get_engine()
        ping(engine)
        if get_settings().is_development:
            logger.info("Development mode: ensuring tables exist")
            Base.metadata.create_all(engine)
    except Exception as e:
        logger.error("Database initialization failed", extra={"error": str(e)})
        return False

    logger.info("Database connection verified")
    return True


__all__ = [
    "is_database_configured",
    "create_engine_for_url",
    "get_engine",
    "close_engine",
    "get_session_factory",
    "get_session",
    "ping",
    "init_database",
]
