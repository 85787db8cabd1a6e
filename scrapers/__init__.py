"""
Clinic Staffing Monitor - Scrapers Package

Fetches clinic rota pages and extracts shift records from them.

Modules:
    base: ShiftRecord and ScrapeResult data classes
    errors: Error kinds and exception types
    dates: Date/time token extraction and year inference
    roles: Role label extraction
    extractor: Rota table walking
    fetcher: Single-clinic fetch and parse
    orchestrator: Concurrent fleet scrape
    scheduler: Cron-driven background batches

Usage:
    from scrapers import ClinicScraper, scrape_all

    async with ClinicScraper() as scraper:
        results = await scrape_all(directory, scraper=scraper)
"""

from scrapers.base import ScrapeResult, ShiftRecord
from scrapers.errors import ScrapeError, ScrapeErrorKind
from scrapers.fetcher import ClinicScraper
from scrapers.orchestrator import scrape_all

__all__ = [
    "ScrapeResult",
    "ShiftRecord",
    "ScrapeError",
    "ScrapeErrorKind",
    "ClinicScraper",
    "scrape_all",
]
