"""
Clinic Staffing Monitor - Cache Freshness Layer

Decides whether cached per-clinic results can be served instead of scraping
the fleet again, and projects cache entries onto a requested date range.

Freshness is all-or-nothing: one missing, stale or errored entry means the
whole fleet is scraped live.

The persistence collaborators are described as Protocols; database.stores
provides SQLAlchemy-backed implementations.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional, Protocol, Sequence

from scrapers.base import ScrapeResult, ShiftRecord
from scrapers.dates import DateRange, filter_shifts_by_range
from staffing.status import ClinicStatus


@dataclass(frozen=True)
class CacheEntry:
    """Last scrape outcome stored for one clinic."""

    clinic_name: str
    shifts: list[ShiftRecord] = field(default_factory=list)
    last_updated: Optional[datetime] = None
    last_scraped: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: ScrapeResult, scraped_at: datetime) -> "CacheEntry":
        return cls(
            clinic_name=result.clinic,
            shifts=list(result.shifts),
            last_updated=result.last_updated,
            last_scraped=scraped_at,
            error=result.error,
        )


class CacheStore(Protocol):
    """Per-clinic cache of the latest scrape results."""

    def find_many(self, clinic_names: Sequence[str]) -> list[CacheEntry]:
        ...

    def upsert(
        self,
        clinic_name: str,
        *,
        shifts: list[ShiftRecord],
        last_updated: datetime,
        last_scraped: datetime,
        error: Optional[str],
    ) -> None:
        ...


class JobTracker(Protocol):
    """Records the outcome of background scrape batches."""

    def create(self, status: str = "running") -> Any:
        ...

    def update(
        self,
        job_id: Any,
        *,
        status: str,
        completed_at: Optional[datetime] = None,
        clinics_scraped: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_entry_fresh(entry: CacheEntry, threshold: timedelta, now: datetime) -> bool:
    """An entry is fresh if scraped less than threshold ago without error."""
    if entry.error or entry.last_scraped is None:
        return False
    return _as_utc(now) - _as_utc(entry.last_scraped) < threshold


def is_fleet_fresh(
    entries: Iterable[CacheEntry],
    all_clinic_names: Iterable[str],
    threshold: timedelta,
    now: datetime,
) -> bool:
    """
    Whether the cache can serve the whole fleet.

    Args:
        entries: Cache entries read for the fleet
        all_clinic_names: Every configured clinic name
        threshold: Maximum entry age
        now: Current time

    Returns:
        True only if every clinic has an entry and every entry is fresh
    """
    by_name = {entry.clinic_name: entry for entry in entries}
    names = list(all_clinic_names)

    if not names:
        return False

    for name in names:
        entry = by_name.get(name)
        if entry is None or not is_entry_fresh(entry, threshold, now):
            return False
    return True


def filter_entry_by_date_range(
    entry: CacheEntry,
    date_range: Optional[DateRange],
    today: date,
) -> ClinicStatus:
    """Project a cache entry onto a date range as a ClinicStatus."""
    shifts = list(entry.shifts)
    if date_range is not None:
        shifts = filter_shifts_by_range(shifts, date_range, today)

    last_updated = entry.last_updated or entry.last_scraped
    return ClinicStatus(
        clinic=entry.clinic_name,
        shifts=shifts,
        last_updated=_as_utc(last_updated) if last_updated else datetime.now(timezone.utc),
        error=entry.error,
    )


def latest_update(entries: Iterable[CacheEntry]) -> Optional[datetime]:
    """Most recent last_updated across entries."""
    stamps = [
        _as_utc(e.last_updated or e.last_scraped)
        for e in entries
        if (e.last_updated or e.last_scraped) is not None
    ]
    return max(stamps) if stamps else None


__all__ = [
    "CacheEntry",
    "CacheStore",
    "JobTracker",
    "is_entry_fresh",
    "is_fleet_fresh",
    "filter_entry_by_date_range",
    "latest_update",
]
