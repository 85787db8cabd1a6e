"""
Clinic Staffing Monitor - Database Models

SQLAlchemy ORM models for the scrape cache and background job tracking.
JSON columns use JSONB on PostgreSQL and plain JSON elsewhere, so the same
models work against SQLite in tests.

Tables:
    - clinic_cache: Latest scrape outcome per clinic
    - scrape_jobs: One row per background scrape batch

Usage:
    from database.models import ClinicCache, ScrapeJob, JobStatus

    job = ScrapeJob(status=JobStatus.RUNNING)
"""

import enum
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SQLEnum,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# Base Class
# =============================================================================

class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# =============================================================================
# Enums
# =============================================================================

class JobStatus(enum.Enum):
    """Lifecycle of a background scrape batch."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Mixins
# =============================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# =============================================================================
# Models
# =============================================================================

class ClinicCache(Base, TimestampMixin):
    """
    Most recent scrape outcome for one clinic.

    Overwritten on every scrape of that clinic, successful or not; shifts
    are stored in their caller-facing dict form.
    """
    __tablename__ = "clinic_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    clinic_name: Mapped[str] = mapped_column(
        String(200),
        unique=True,
        nullable=False,
        index=True,
        comment="Clinic display name",
    )
    shifts: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Shift records from the last scrape",
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Completion time reported by the scrape",
    )
    last_scraped: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the entry was written; drives freshness",
    )
    error: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Failure reason if the last scrape failed",
    )

    def __repr__(self) -> str:
        return f"<ClinicCache(clinic_name={self.clinic_name!r}, last_scraped={self.last_scraped!r})>"


class ScrapeJob(Base):
    """
    One background scrape batch.

    Created as running and updated to completed or failed when the batch
    ends.
    """
    __tablename__ = "scrape_jobs"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(
            JobStatus,
            name="job_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=JobStatus.RUNNING,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    clinics_scraped: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Clinics scraped without error",
    )
    error: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (
        Index("ix_scrape_jobs_started_at", "started_at"),
    )

    def __repr__(self) -> str:
        return f"<ScrapeJob(id={self.id!r}, status={self.status.value!r})>"


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "Base",
    "JobStatus",
    "TimestampMixin",
    "ClinicCache",
    "ScrapeJob",
]
