"""
Clinic Staffing Monitor - Single-Clinic Fetcher

Fetches one clinic's rota page and turns it into a ScrapeResult.

ClinicScraper owns a shared httpx.AsyncClient and is used as an async
context manager. scrape_clinic never raises: timeouts, transport failures,
non-2xx responses and unexpected parser errors all come back as a failed
ScrapeResult carrying a ScrapeErrorKind.

Usage:
    async with ClinicScraper() as scraper:
        result = await scraper.scrape_clinic(clinic)
        if result.ok:
            print(len(result.shifts))
"""

import asyncio
import logging
import time
from datetime import date, datetime
from typing import Callable, Optional

import httpx
from bs4 import BeautifulSoup

from config.clinics import Clinic
from config.logging import LogContext
from config.settings import get_settings
from scrapers.base import ScrapeResult, ShiftRecord, utc_now
from scrapers.dates import DateRange, filter_shifts_by_range
from scrapers.errors import ScrapeError, ScrapeErrorKind
from scrapers.extractor import extract_shifts


logger = logging.getLogger(__name__)


class ClinicScraper:
    """
    Fetches and parses clinic rota pages.

    Attributes:
        timeout: Per-fetch timeout in seconds, counted from when the fetch
            gets a connection slot
        user_agent: User-Agent header sent with every request
        max_connections: Fetches allowed in flight at once
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        max_connections: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today_provider: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = utc_now,
    ):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.scrape_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self.max_connections = max_connections or settings.scrape_max_connections
        self._slots = asyncio.Semaphore(self.max_connections)
        self._transport = transport
        self._today_provider = today_provider
        self._clock = clock
        self._http_client: Optional[httpx.AsyncClient] = None

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "ClinicScraper":
        await self._init_http_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _init_http_client(self) -> None:
        """Initialize HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "en-GB,en;q=0.9",
                },
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                # Concurrency is capped by _slots; the pool itself never queues
                limits=httpx.Limits(
                    max_connections=None,
                    max_keepalive_connections=self.max_connections,
                ),
                transport=self._transport,
            )
            logger.debug("HTTP client initialized")

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def today(self) -> date:
        """Reference date used for year inference."""
        return self._today_provider()

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def fetch_page(self, url: str) -> str:
        """
        GET a rota page within the configured timeout.

        Waiting for a free slot does not count toward the timeout, so a fetch
        queued behind hanging sources still gets its full budget.

        Raises:
            ScrapeError: On timeout, transport failure or non-2xx status
        """
        if self._http_client is None:
            await self._init_http_client()

        logger.debug(f"Fetching (HTTP): {url}")

        try:
            async with self._slots:
                response = await asyncio.wait_for(
                    self._http_client.get(url),
                    timeout=self.timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise ScrapeError(
                ScrapeErrorKind.TIMEOUT,
                f"Request timed out after {self.timeout:g}s",
            )
        except httpx.RequestError as e:
            raise ScrapeError(
                ScrapeErrorKind.TRANSPORT,
                str(e) or e.__class__.__name__,
            )

        if not response.is_success:
            raise ScrapeError(
                ScrapeErrorKind.HTTP_STATUS,
                f"HTTP {response.status_code}: {response.reason_phrase}",
            )

        return response.text

    def parse_rota_html(self, html: str, clinic_label: str) -> list[ShiftRecord]:
        """Parse rota HTML without fetching; malformed input yields []."""
        try:
            soup = BeautifulSoup(html or "", "lxml")
        except Exception as e:
            logger.warning(
                f"Could not parse rota page for {clinic_label}: {e}",
                extra={"clinic": clinic_label},
            )
            return []
        return extract_shifts(soup, clinic_label, self.today())

    async def scrape_clinic(
        self,
        clinic: Clinic,
        date_range: Optional[DateRange] = None,
    ) -> ScrapeResult:
        """
        Scrape one clinic.

        Args:
            clinic: Clinic to scrape
            date_range: Optional output filter over the extracted shifts

        Returns:
            ScrapeResult; failures are returned, never raised
        """
        start = time.monotonic()

        with LogContext(clinic=clinic.name):
            logger.info(f"Scraping {clinic.name}", extra={"url": clinic.url})

            try:
                html = await self.fetch_page(clinic.url)
                shifts = self.parse_rota_html(html, clinic.name)
                if date_range is not None:
                    shifts = filter_shifts_by_range(shifts, date_range, self.today())
                result = ScrapeResult.success(clinic.name, shifts, last_updated=self._clock())

            except ScrapeError as e:
                result = ScrapeResult.failure(
                    clinic.name, e.message, kind=e.kind, last_updated=self._clock()
                )

            except Exception as e:
                logger.exception(f"Unexpected error scraping {clinic.name}")
                result = ScrapeResult.failure(
                    clinic.name,
                    str(e) or e.__class__.__name__,
                    kind=ScrapeErrorKind.UNEXPECTED,
                    last_updated=self._clock(),
                )

            duration = round(time.monotonic() - start, 3)
            if result.ok:
                logger.info(
                    f"Scraped {clinic.name}: {len(result.shifts)} shifts",
                    extra={"shift_count": len(result.shifts), "duration_seconds": duration},
                )
            else:
                logger.warning(
                    f"Scrape failed for {clinic.name}: {result.error}",
                    extra={
                        "error_kind": result.error_kind.value,
                        "duration_seconds": duration,
                    },
                )

        return result


__all__ = ["ClinicScraper"]
