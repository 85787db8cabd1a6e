"""
Clinic Staffing Monitor - Fleet Status Service

Entry point used by callers that want the fleet's staffing picture.

get_fleet serves cached results when every clinic's cache entry is fresh
and error-free, and otherwise scrapes the whole fleet live and writes every
result back through the cache. Without a cache store (no database
configured) every call scrapes live.

Usage:
    from config.clinics import get_clinic_directory
    from database.stores import SqlCacheStore
    from scrapers.fetcher import ClinicScraper
    from staffing.service import FleetStatusService

    service = FleetStatusService(
        get_clinic_directory(), ClinicScraper, cache_store=SqlCacheStore()
    )
    snapshot = await service.get_fleet()
    print(snapshot.to_dict())
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from config.clinics import ClinicDirectory
from config.settings import get_settings
from scrapers.base import ScrapeResult, isoformat_utc, utc_now
from scrapers.dates import DateRange
from scrapers.errors import ClinicNotFoundError
from scrapers.fetcher import ClinicScraper
from scrapers.orchestrator import scrape_all
from staffing.cache import (
    CacheEntry,
    CacheStore,
    filter_entry_by_date_range,
    is_fleet_fresh,
    latest_update,
)
from staffing.status import ClinicStatus


logger = logging.getLogger(__name__)


@dataclass
class FleetSnapshot:
    """Status of every clinic plus where the data came from."""

    clinics: list[ClinicStatus] = field(default_factory=list)
    cached: bool = False
    last_updated: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "clinics": [clinic.to_dict() for clinic in self.clinics],
            "cached": self.cached,
            "lastUpdated": isoformat_utc(self.last_updated),
        }


def write_through(
    cache_store: Optional[CacheStore],
    results: list[ScrapeResult],
    scraped_at: datetime,
) -> list[str]:
    """
    Upsert every result into the cache.

    Each clinic is written independently; a failed write is logged and the
    remaining clinics are still written.

    Returns:
        Names of the clinics written successfully, in result order
    """
    if cache_store is None:
        return []

    written: list[str] = []
    for result in results:
        try:
            cache_store.upsert(
                result.clinic,
                shifts=result.shifts,
                last_updated=result.last_updated,
                last_scraped=scraped_at,
                error=result.error,
            )
            written.append(result.clinic)
        except Exception as e:
            logger.error(
                f"Failed to cache results for {result.clinic}: {e}",
                extra={"clinic": result.clinic},
            )
    return written


class FleetStatusService:
    """
    Serves per-clinic staffing status for the whole fleet.

    Attributes:
        directory: Clinics to report on
        freshness: Maximum cache age before a live scrape is forced
    """

    def __init__(
        self,
        directory: ClinicDirectory,
        scraper_factory: Callable[[], ClinicScraper] = ClinicScraper,
        cache_store: Optional[CacheStore] = None,
        freshness: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now,
        today_provider: Callable[[], date] = date.today,
    ):
        settings = get_settings()
        self.directory = directory
        self.freshness = freshness if freshness is not None else settings.cache_freshness
        self.default_range_days = settings.default_range_days
        self._scraper_factory = scraper_factory
        self._cache_store = cache_store
        self._clock = clock
        self._today_provider = today_provider

    def default_range(self) -> DateRange:
        """The standard reporting window, today through today + default_range_days."""
        return DateRange.default(self._today_provider(), self.default_range_days)

    # -------------------------------------------------------------------------
    # Fleet
    # -------------------------------------------------------------------------

    async def get_fleet(
        self,
        date_range: Optional[DateRange] = None,
        force_refresh: bool = False,
    ) -> FleetSnapshot:
        """
        Get the status of every clinic.

        Args:
            date_range: Reporting window shifts are filtered to; defaults to
                default_range()
            force_refresh: Skip the cache and scrape live

        Returns:
            FleetSnapshot with computed statuses, in directory order
        """
        today = self._today_provider()
        if date_range is None:
            date_range = self.default_range()

        if not force_refresh:
            snapshot = self._from_cache(date_range, today)
            if snapshot is not None:
                return snapshot

        async with self._scraper_factory() as scraper:
            results = await scrape_all(self.directory, None, scraper=scraper)

        completed_at = self._clock()
        write_through(self._cache_store, results, completed_at)

        clinics = []
        for result in results:
            entry = CacheEntry.from_result(result, completed_at)
            clinics.append(filter_entry_by_date_range(entry, date_range, today).with_status(today))

        return FleetSnapshot(clinics=clinics, cached=False, last_updated=completed_at)

    def _from_cache(self, date_range: DateRange, today: date) -> Optional[FleetSnapshot]:
        """Snapshot built from the cache, or None when a live scrape is needed."""
        if self._cache_store is None:
            return None

        names = self.directory.names()
        try:
            entries = self._cache_store.find_many(names)
        except Exception as e:
            logger.warning(f"Cache read failed, scraping live: {e}")
            return None

        if not is_fleet_fresh(entries, names, self.freshness, self._clock()):
            logger.info("Cache stale or incomplete, scraping live")
            return None

        by_name = {entry.clinic_name: entry for entry in entries}
        clinics = [
            filter_entry_by_date_range(by_name[name], date_range, today).with_status(today)
            for name in names
        ]

        logger.info("Serving fleet status from cache", extra={"clinics": len(clinics)})
        return FleetSnapshot(
            clinics=clinics,
            cached=True,
            last_updated=latest_update(entries) or self._clock(),
        )

    # -------------------------------------------------------------------------
    # Single Clinic
    # -------------------------------------------------------------------------

    async def get_clinic_rota(self, clinic_name: str) -> ScrapeResult:
        """
        Scrape one clinic live by display name.

        Raises:
            ClinicNotFoundError: If no clinic has that name
        """
        clinic = self.directory.get_by_name(clinic_name)
        if clinic is None:
            raise ClinicNotFoundError(clinic_name)

        async with self._scraper_factory() as scraper:
            return await scraper.scrape_clinic(clinic)


__all__ = [
    "FleetSnapshot",
    "FleetStatusService",
    "write_through",
]
