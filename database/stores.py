"""
Clinic Staffing Monitor - SQL-Backed Stores

SQLAlchemy implementations of the cache and job-tracking collaborators
used by the fleet service and the background batch. Each call runs in its
own session and transaction. Database errors surface as PersistenceError.

Usage:
    from database.stores import SqlCacheStore, SqlJobTracker

    cache_store = SqlCacheStore()
    entries = cache_store.find_many(directory.names())
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from database.connection import get_session_factory
from database.models import ClinicCache, JobStatus
from database.repository import UnitOfWork
from scrapers.base import ShiftRecord
from scrapers.errors import PersistenceError
from staffing.cache import CacheEntry


logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_cache_entry(row: ClinicCache) -> CacheEntry:
    """Convert a ClinicCache row to a CacheEntry."""
    return CacheEntry(
        clinic_name=row.clinic_name,
        shifts=[ShiftRecord.from_dict(item) for item in row.shifts or []],
        last_updated=_as_utc(row.last_updated),
        last_scraped=_as_utc(row.last_scraped),
        error=row.error,
    )


class _SqlStore:
    """Shared session handling for the SQL stores."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory

    @contextmanager
    def _unit_of_work(self) -> Generator[UnitOfWork, None, None]:
        factory = self._session_factory or get_session_factory()
        session: Session = factory()
        try:
            with UnitOfWork(session) as uow:
                yield uow
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e
        finally:
            session.close()


class SqlCacheStore(_SqlStore):
    """Cache store backed by the clinic_cache table."""

    def find_many(self, clinic_names: Sequence[str]) -> list[CacheEntry]:
        with self._unit_of_work() as uow:
            return [to_cache_entry(row) for row in uow.caches.find_many(clinic_names)]

    def upsert(
        self,
        clinic_name: str,
        *,
        shifts: list[ShiftRecord],
        last_updated: datetime,
        last_scraped: datetime,
        error: Optional[str],
    ) -> None:
        with self._unit_of_work() as uow:
            uow.caches.upsert(
                clinic_name,
                shifts=[shift.to_dict() for shift in shifts],
                last_updated=last_updated,
                last_scraped=last_scraped,
                error=error,
            )
            uow.commit()

        logger.debug(f"Cached results for {clinic_name}", extra={"clinic": clinic_name})


class SqlJobTracker(_SqlStore):
    """Job tracker backed by the scrape_jobs table."""

    def create(self, status: str = "running") -> UUID:
        with self._unit_of_work() as uow:
            job = uow.jobs.create(JobStatus(status))
            uow.commit()
            return job.id

    def update(
        self,
        job_id: UUID,
        *,
        status: str,
        completed_at: Optional[datetime] = None,
        clinics_scraped: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        with self._unit_of_work() as uow:
            job = uow.jobs.update(
                job_id,
                JobStatus(status),
                completed_at=completed_at,
                clinics_scraped=clinics_scraped,
                error=error,
            )
            if job is None:
                raise PersistenceError(f"Scrape job not found: {job_id}")
            uow.commit()


__all__ = [
    "SqlCacheStore",
    "SqlJobTracker",
    "to_cache_entry",
]
