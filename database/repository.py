"""
Clinic Staffing Monitor - Database Repository Layer

Data access for the scrape cache and job tracking tables.

Repositories:
    - ClinicCacheRepository: Per-clinic latest scrape outcome
    - ScrapeJobRepository: Background batch records

Usage:
    from database.repository import ClinicCacheRepository
    from database.connection import get_session

    with get_session() as session:
        repo = ClinicCacheRepository(session)
        caches = repo.find_many(["Bristol", "Leeds"])
"""

import logging
from datetime import datetime
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from database.models import ClinicCache, JobStatus, ScrapeJob
from scrapers.base import utc_now


logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


# =============================================================================
# Base Repository
# =============================================================================

class BaseRepository:
    """
    Base repository with common operations.

    Subclasses set model_class and add entity-specific methods.
    """

    model_class: type = None

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, id: Any) -> Optional[Any]:
        """Get entity by primary key."""
        return self.session.get(self.model_class, id)

    def count(self) -> int:
        """Count all entities."""
        return self.session.scalar(select(func.count()).select_from(self.model_class))


# =============================================================================
# Clinic Cache Repository
# =============================================================================

class ClinicCacheRepository(BaseRepository):
    """Repository for ClinicCache entries."""

    model_class = ClinicCache

    def find_many(self, clinic_names: Sequence[str]) -> list[ClinicCache]:
        """Cache rows for the given clinic names; missing clinics are absent."""
        if not clinic_names:
            return []
        stmt = select(ClinicCache).where(ClinicCache.clinic_name.in_(list(clinic_names)))
        return list(self.session.scalars(stmt))

    def get_by_name(self, clinic_name: str) -> Optional[ClinicCache]:
        """Get the cache row for one clinic."""
        stmt = select(ClinicCache).where(ClinicCache.clinic_name == clinic_name)
        return self.session.scalars(stmt).first()

    def upsert(
        self,
        clinic_name: str,
        shifts: list[dict[str, Any]],
        last_updated: datetime,
        last_scraped: datetime,
        error: Optional[str] = None,
    ) -> ClinicCache:
        """
        Insert or overwrite the cache row for a clinic.

        PostgreSQL and SQLite write with a single INSERT ... ON CONFLICT
        statement, so concurrent writers for the same clinic never trip the
        unique constraint on clinic_name.

        Args:
            clinic_name: Clinic display name (unique key)
            shifts: Shift records in dict form
            last_updated: Scrape completion time
            last_scraped: Write time, used for freshness
            error: Failure reason, None on success

        Returns:
            The ClinicCache row
        """
        values = {
            "shifts": list(shifts),
            "last_updated": last_updated,
            "last_scraped": last_scraped,
            "error": error,
        }

        insert = _UPSERT_INSERTS.get(self.session.get_bind().dialect.name)
        if insert is None:
            return self._merge(clinic_name, values)

        stmt = insert(ClinicCache).values(clinic_name=clinic_name, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["clinic_name"],
            set_={**values, "updated_at": func.now()},
        )
        self.session.execute(stmt)

        # Refresh any copy already in the identity map
        return self.session.scalars(
            select(ClinicCache)
            .where(ClinicCache.clinic_name == clinic_name)
            .execution_options(populate_existing=True)
        ).one()

    def _merge(self, clinic_name: str, values: dict[str, Any]) -> ClinicCache:
        entry = self.get_by_name(clinic_name)

        if entry is None:
            entry = ClinicCache(clinic_name=clinic_name)
            self.session.add(entry)
            logger.debug(f"Created cache entry: {clinic_name}")

        for key, value in values.items():
            setattr(entry, key, value)
        self.session.flush()

        return entry


# =============================================================================
# Scrape Job Repository
# =============================================================================

class ScrapeJobRepository(BaseRepository):
    """Repository for ScrapeJob entities."""

    model_class = ScrapeJob

    def create(self, status: JobStatus = JobStatus.RUNNING) -> ScrapeJob:
        """Create a job record; started_at is set to now."""
        job = ScrapeJob(status=status, started_at=utc_now())
        self.session.add(job)
        self.session.flush()

        logger.debug(f"Created scrape job: {job.id}")
        return job

    def update(
        self,
        job_id: UUID,
        status: JobStatus,
        completed_at: Optional[datetime] = None,
        clinics_scraped: Optional[int] = None,
        error: Optional[str] = None,
    ) -> Optional[ScrapeJob]:
        """
        Record a job's outcome.

        Returns:
            The updated job, or None if no job has that id
        """
        job = self.get_by_id(job_id)
        if job is None:
            logger.warning(f"Scrape job not found: {job_id}")
            return None

        job.status = status
        if completed_at is not None:
            job.completed_at = completed_at
        if clinics_scraped is not None:
            job.clinics_scraped = clinics_scraped
        if error is not None:
            job.error = error
        self.session.flush()

        return job

    def get_latest(self) -> Optional[ScrapeJob]:
        """Most recently started job."""
        stmt = select(ScrapeJob).order_by(ScrapeJob.started_at.desc()).limit(1)
        return self.session.scalars(stmt).first()


# =============================================================================
# Unit of Work
# =============================================================================

class UnitOfWork:
    """
    Unit of Work pattern for managing transactions.

    Usage:
        with UnitOfWork(session) as uow:
            uow.caches.upsert(...)
            uow.commit()
    """

    def __init__(self, session: Session):
        self.session = session
        self.caches = ClinicCacheRepository(session)
        self.jobs = ScrapeJobRepository(session)

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context, rollback on exception."""
        if exc_type is not None:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "BaseRepository",
    "ClinicCacheRepository",
    "ScrapeJobRepository",
    "UnitOfWork",
]
