"""
Clinic Staffing Monitor - Fleet Orchestrator

Scrapes every clinic concurrently and returns one ScrapeResult per clinic,
in input order. A clinic that fails, times out or crashes the parser gets an
error-bearing result; it never affects the results of the others.
"""

import asyncio
import logging
import time
from typing import Iterable, Optional

from config.clinics import Clinic
from config.settings import get_settings
from scrapers.base import ScrapeResult
from scrapers.dates import DateRange, filter_shifts_by_range
from scrapers.errors import ScrapeErrorKind
from scrapers.fetcher import ClinicScraper


logger = logging.getLogger(__name__)


def _result_from_exception(clinic: Clinic, exc: BaseException) -> ScrapeResult:
    if isinstance(exc, asyncio.CancelledError):
        message = "Scrape cancelled"
    else:
        message = str(exc) or exc.__class__.__name__
    return ScrapeResult.failure(clinic.name, message, kind=ScrapeErrorKind.UNEXPECTED)


async def scrape_all(
    clinics: Iterable[Clinic],
    date_range: Optional[DateRange] = None,
    *,
    scraper: Optional[ClinicScraper] = None,
) -> list[ScrapeResult]:
    """
    Scrape all clinics concurrently and wait for every one to settle.

    Args:
        clinics: Clinics to scrape, usually a ClinicDirectory
        date_range: Optional output filter applied to successful results
        scraper: Scraper to use; one is created (and closed) if not given,
            with a slot for every clinic so none waits behind another

    Returns:
        One ScrapeResult per clinic, aligned with the input order
    """
    clinic_list = list(clinics)
    if not clinic_list:
        return []

    if scraper is None:
        slots = max(len(clinic_list), get_settings().scrape_max_connections)
        async with ClinicScraper(max_connections=slots) as own_scraper:
            return await scrape_all(clinic_list, date_range, scraper=own_scraper)

    start = time.monotonic()
    logger.info(f"Scraping {len(clinic_list)} clinics")

    outcomes = await asyncio.gather(
        *(scraper.scrape_clinic(clinic) for clinic in clinic_list),
        return_exceptions=True,
    )

    today = scraper.today()
    results: list[ScrapeResult] = []
    for clinic, outcome in zip(clinic_list, outcomes):
        if isinstance(outcome, (KeyboardInterrupt, SystemExit)):
            raise outcome

        if isinstance(outcome, BaseException):
            logger.error(
                f"Scrape task for {clinic.name} raised: {outcome!r}",
                extra={"clinic": clinic.name},
            )
            results.append(_result_from_exception(clinic, outcome))
            continue

        if date_range is not None and outcome.ok:
            outcome = outcome.with_shifts(
                filter_shifts_by_range(outcome.shifts, date_range, today)
            )
        results.append(outcome)

    failed = sum(1 for r in results if not r.ok)
    logger.info(
        f"Fleet scrape complete: {len(results) - failed} ok, {failed} failed",
        extra={
            "total_clinics": len(results),
            "failed_clinics": failed,
            "total_shifts": sum(len(r.shifts) for r in results),
            "duration_seconds": round(time.monotonic() - start, 3),
        },
    )
    return results


__all__ = ["scrape_all"]
