"""
Clinic Staffing Monitor - Scrape Scheduler

Background batch scraping on a cron schedule. Each batch scrapes the whole
fleet, writes every result through the cache and records the batch in the
job tracker.

Usage:
    # As a module (Docker)
    python -m scrapers.scheduler

    # Programmatically
    from scrapers.scheduler import ScrapeScheduler
    scheduler = ScrapeScheduler(directory, cache_store=..., job_tracker=...)
    scheduler.start()
"""

import asyncio
import signal
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import (
    EVENT_JOB_EXECUTED,
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)

from config.clinics import ClinicDirectory, get_clinic_directory
from config.logging import LogContext, get_logger, setup_logging
from config.settings import get_settings
from database.connection import init_database
from database.stores import SqlCacheStore, SqlJobTracker
from scrapers.base import ScrapeResult, utc_now
from scrapers.fetcher import ClinicScraper
from scrapers.orchestrator import scrape_all
from staffing.cache import CacheStore, JobTracker
from staffing.service import write_through


logger = get_logger(__name__)

SCRAPE_JOB_ID = "scrape_all_clinics"


# =============================================================================
# Batch Execution
# =============================================================================

@dataclass
class BatchOutcome:
    """What a background batch did."""

    success: bool
    clinics_scraped: int = 0
    total_clinics: int = 0
    duration_seconds: float = 0.0
    results: list[ScrapeResult] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "clinicsScraped": self.clinics_scraped,
            "totalClinics": self.total_clinics,
            "duration": self.duration_seconds,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


def _track(job_tracker: Optional[JobTracker], action: str, *args: Any, **kwargs: Any) -> Any:
    """Call the job tracker, logging and ignoring its failures."""
    if job_tracker is None:
        return None
    try:
        return getattr(job_tracker, action)(*args, **kwargs)
    except Exception as e:
        logger.error(f"Job tracking failed ({action}): {e}")
        return None


async def run_scrape_batch(
    directory: ClinicDirectory,
    scraper_factory: Callable[[], ClinicScraper] = ClinicScraper,
    cache_store: Optional[CacheStore] = None,
    job_tracker: Optional[JobTracker] = None,
) -> BatchOutcome:
    """
    Scrape the whole fleet once and persist the results.

    Args:
        directory: Clinics to scrape
        scraper_factory: Builds the ClinicScraper for this batch
        cache_store: Where results are written, if persistence is configured
        job_tracker: Where the batch is recorded, if configured

    Returns:
        BatchOutcome; job tracking failures never change it
    """
    start = time.monotonic()
    total = len(directory)
    job_id = _track(job_tracker, "create", "running")

    with LogContext(job_id=str(job_id) if job_id is not None else None):
        logger.info(f"Starting scrape batch for {total} clinics")

        try:
            async with scraper_factory() as scraper:
                results = await scrape_all(directory, None, scraper=scraper)

            written = set(write_through(cache_store, results, utc_now()))

        except Exception as e:
            logger.exception("Scrape batch failed")
            message = str(e) or e.__class__.__name__
            if job_id is not None:
                _track(
                    job_tracker, "update", job_id,
                    status="failed", completed_at=utc_now(), error=message,
                )
            return BatchOutcome(
                success=False,
                total_clinics=total,
                duration_seconds=round(time.monotonic() - start, 3),
                error=message,
            )

        # With a cache, a clinic only counts once its result is stored
        clinics_scraped = sum(
            1 for r in results
            if r.ok and (cache_store is None or r.clinic in written)
        )
        if job_id is not None:
            _track(
                job_tracker, "update", job_id,
                status="completed", completed_at=utc_now(), clinics_scraped=clinics_scraped,
            )

        outcome = BatchOutcome(
            success=True,
            clinics_scraped=clinics_scraped,
            total_clinics=total,
            duration_seconds=round(time.monotonic() - start, 3),
            results=results,
        )
        logger.info(
            f"Scrape batch complete: {clinics_scraped}/{total} clinics",
            extra={"duration_seconds": outcome.duration_seconds},
        )
        return outcome


# =============================================================================
# Scheduler
# =============================================================================

class ScrapeScheduler:
    """
    Runs run_scrape_batch on a cron schedule.

    Features:
    - Cron expression from settings
    - Manual trigger capability
    - Job execution logging
    - Graceful shutdown
    """

    def __init__(
        self,
        directory: ClinicDirectory,
        scraper_factory: Callable[[], ClinicScraper] = ClinicScraper,
        cache_store: Optional[CacheStore] = None,
        job_tracker: Optional[JobTracker] = None,
        cron: Optional[str] = None,
    ):
        self.settings = get_settings()
        self.directory = directory
        self.cron = cron or self.settings.scrape_schedule_cron
        self._scraper_factory = scraper_factory
        self._cache_store = cache_store
        self._job_tracker = job_tracker

        self.scheduler = AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs
                "max_instances": 1,  # Only one instance per job
                "misfire_grace_time": 600,
            },
        )
        self._running = False

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        """Handle successful job execution."""
        outcome = event.retval
        logger.info(
            "Job executed successfully",
            extra={
                "job_id": event.job_id,
                "scheduled_time": event.scheduled_run_time.isoformat(),
                "return_value": outcome.to_dict() if isinstance(outcome, BatchOutcome) else None,
            },
        )

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        """Handle job execution error."""
        logger.error(
            "Job execution failed",
            extra={
                "job_id": event.job_id,
                "scheduled_time": event.scheduled_run_time.isoformat(),
                "exception": str(event.exception),
            },
        )

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        """Handle missed job execution."""
        logger.warning(
            "Job execution missed",
            extra={
                "job_id": event.job_id,
                "scheduled_time": event.scheduled_run_time.isoformat(),
            },
        )

    async def _run_batch(self) -> BatchOutcome:
        return await run_scrape_batch(
            self.directory,
            self._scraper_factory,
            self._cache_store,
            self._job_tracker,
        )

    def schedule(self) -> None:
        """Add (or replace) the cron job for the fleet scrape."""
        self.scheduler.add_job(
            self._run_batch,
            trigger=CronTrigger.from_crontab(self.cron, timezone="UTC"),
            id=SCRAPE_JOB_ID,
            name="Scrape all clinics",
            replace_existing=True,
        )
        logger.info(f"Scheduled fleet scrape: {self.cron}")

    async def trigger_now(self) -> BatchOutcome:
        """Run a batch immediately, outside the schedule."""
        logger.info("Manual trigger for fleet scrape")
        return await self._run_batch()

    def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting scheduler")
        self.schedule()
        self.scheduler.start()
        self._running = True

        for job in self.scheduler.get_jobs():
            logger.debug(
                "Scheduled job",
                extra={
                    "job_id": job.id,
                    "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                },
            )

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        logger.info("Stopping scheduler")
        self.scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_job_status(self) -> list[dict[str, Any]]:
        """
        Get status of all scheduled jobs.

        Returns:
            List of job status dictionaries
        """
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
                "pending": job.pending,
            })
        return jobs


# =============================================================================
# Main Entry Point
# =============================================================================

async def main() -> int:
    """
    Main entry point for scheduler service.

    Returns:
        Exit code (0 for success)
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Clinic Staffing Monitor - Scheduler Service")
    logger.info("=" * 60)

    cache_store = None
    job_tracker = None
    if init_database():
        cache_store = SqlCacheStore()
        job_tracker = SqlJobTracker()
    else:
        logger.warning("Running without persistence; results will not be cached")

    scheduler = ScrapeScheduler(
        get_clinic_directory(),
        cache_store=cache_store,
        job_tracker=job_tracker,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(sig):
        logger.info(f"Received signal {sig}, shutting down...")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

    scheduler.start()

    try:
        await stop_event.wait()
    finally:
        scheduler.stop()

    return 0


if __name__ == "__main__":
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted by user")
        sys.exit(0)
