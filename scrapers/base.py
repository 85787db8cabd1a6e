"""
Clinic Staffing Monitor - Scrape Data Classes

ShiftRecord and ScrapeResult are the intermediate format between scraping,
the cache, and the status classifier.

ScrapeResult is the pipeline's result type: a successful scrape carries a
shift list, a failed one carries an error message and kind with no shifts.

Usage:
    from scrapers.base import ScrapeResult, ShiftRecord

    result = ScrapeResult.success("Leeds", [ShiftRecord("2026-01-05", "10:00", ["Optometrist"])])
    if result.ok:
        print(len(result.shifts))
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

from scrapers.errors import ScrapeErrorKind


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    """Render a datetime as ISO 8601, assuming UTC for naive values."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class ShiftRecord:
    """
    One staffing slot found on a rota page.

    date is YYYY-MM-DD when the source date could be normalised, otherwise
    the date text exactly as it appeared. time is HH:MM (24-hour) or empty.
    job_roles keeps page order and may contain duplicates. It is stored as a
    tuple, so records are hashable and cannot be changed after creation.
    """

    date: str
    time: str = ""
    job_roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.job_roles, tuple):
            object.__setattr__(self, "job_roles", tuple(self.job_roles))

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "time": self.time,
            "jobRoles": list(self.job_roles),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShiftRecord":
        return cls(
            date=str(data.get("date") or ""),
            time=str(data.get("time") or ""),
            job_roles=tuple(str(role) for role in data.get("jobRoles") or []),
        )


@dataclass
class ScrapeResult:
    """
    Result of scraping one clinic.

    Exactly one of the two arms is populated: shifts for a successful scrape,
    error (with error_kind) for a failed one.
    """

    clinic: str
    shifts: list[ShiftRecord] = field(default_factory=list)
    last_updated: datetime = field(default_factory=utc_now)
    error: Optional[str] = None
    error_kind: Optional[ScrapeErrorKind] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.shifts:
            raise ValueError("A failed ScrapeResult cannot carry shifts")
        if self.error is not None and not self.error:
            raise ValueError("ScrapeResult error message must not be empty")

    @classmethod
    def success(
        cls,
        clinic: str,
        shifts: list[ShiftRecord],
        last_updated: Optional[datetime] = None,
    ) -> "ScrapeResult":
        return cls(
            clinic=clinic,
            shifts=list(shifts),
            last_updated=last_updated or utc_now(),
        )

    @classmethod
    def failure(
        cls,
        clinic: str,
        error: str,
        kind: ScrapeErrorKind = ScrapeErrorKind.UNEXPECTED,
        last_updated: Optional[datetime] = None,
    ) -> "ScrapeResult":
        return cls(
            clinic=clinic,
            shifts=[],
            last_updated=last_updated or utc_now(),
            error=error or "Unknown error",
            error_kind=kind,
        )

    @property
    def ok(self) -> bool:
        """True when the scrape succeeded (even with zero shifts)."""
        return self.error is None

    def with_shifts(self, shifts: list[ShiftRecord]) -> "ScrapeResult":
        """Copy of a successful result with a different shift list."""
        if not self.ok:
            return self
        return replace(self, shifts=list(shifts))

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing representation."""
        data: dict[str, Any] = {
            "clinic": self.clinic,
            "shifts": [shift.to_dict() for shift in self.shifts],
            "lastUpdated": isoformat_utc(self.last_updated),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "ShiftRecord",
    "ScrapeResult",
    "utc_now",
    "isoformat_utc",
]
