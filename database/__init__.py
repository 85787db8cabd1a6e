"""
Clinic Staffing Monitor - Database Package

Optional persistence for the scrape cache and background job records.

Modules:
    models: SQLAlchemy ORM models
    connection: Database engine and session management
    repository: Data access layer
    stores: Cache and job-tracking stores used by the service and scheduler

Usage:
    from database.connection import is_database_configured
    from database.stores import SqlCacheStore

    cache_store = SqlCacheStore() if is_database_configured() else None
"""

from database.models import (
    Base,
    ClinicCache,
    ScrapeJob,
    JobStatus,
)
from database.connection import (
    is_database_configured,
    get_engine,
    get_session,
    init_database,
    close_engine,
)
from database.repository import (
    ClinicCacheRepository,
    ScrapeJobRepository,
    UnitOfWork,
)
from database.stores import SqlCacheStore, SqlJobTracker

__all__ = [
    # Models
    "Base",
    "ClinicCache",
    "ScrapeJob",
    "JobStatus",
    # Connection
    "is_database_configured",
    "get_engine",
    "get_session",
    "init_database",
    "close_engine",
    # Repositories
    "ClinicCacheRepository",
    "ScrapeJobRepository",
    "UnitOfWork",
    # Stores
    "SqlCacheStore",
    "SqlJobTracker",
]
