"""
Clinic Staffing Monitor - Fleet Orchestrator Tests

Tests that a fleet scrape returns one result per clinic, in order, and that
one failing clinic never affects the others.
"""

import asyncio
from datetime import date, datetime, timezone
from contextlib import asynccontextmanager
from unittest.mock import patch

import httpx
import pytest

from scrapers.base import ScrapeResult
from scrapers.dates import DateRange
from scrapers.errors import ScrapeErrorKind
from scrapers.fetcher import ClinicScraper
from scrapers.orchestrator import scrape_all


TODAY = date(2025, 12, 18)
NOW = datetime(2025, 12, 18, 9, 0, tzinfo=timezone.utc)


def make_scraper(handler, **kwargs):
    return ClinicScraper(
        transport=httpx.MockTransport(handler),
        today_provider=lambda: TODAY,
        clock=lambda: NOW,
        **kwargs,
    )


def routed_handler(html, failing=(), slow=(), delays=None):
    """Serve html, except failing paths raise and slow paths hang."""
    delays = delays or {}

    async def handler(request):
        path = request.url.path.strip("/")
        if path in failing:
            raise httpx.ConnectError("Connection refused", request=request)
        if path in slow:
            await asyncio.sleep(5)
        await asyncio.sleep(delays.get(path, 0))
        return httpx.Response(200, text=html)

    return handler


class TestScrapeAll:
    """Tests for concurrent fleet scraping."""

    @pytest.mark.asyncio
    async def test_one_result_per_clinic_in_order(self, directory_factory, sample_rota_html):
        directory = directory_factory("Alpha", "Bravo", "Charlie")
        # Alpha finishes last
        handler = routed_handler(sample_rota_html, delays={"alpha": 0.05, "bravo": 0.01})

        async with make_scraper(handler) as scraper:
            results = await scrape_all(directory, scraper=scraper)

        assert [r.clinic for r in results] == ["Alpha", "Bravo", "Charlie"]
        assert all(r.ok for r in results)

    @pytest.mark.asyncio
    async def test_failure_isolated(self, directory_factory, sample_rota_html):
        """Exactly one error; the others match a control run."""
        directory = directory_factory("Alpha", "Bravo", "Charlie")

        async with make_scraper(routed_handler(sample_rota_html)) as scraper:
            control = await scrape_all(directory, scraper=scraper)

        async with make_scraper(routed_handler(sample_rota_html, failing={"bravo"})) as scraper:
            results = await scrape_all(directory, scraper=scraper)

        assert len(results) == 3
        assert [r.ok for r in results] == [True, False, True]
        assert results[1].error == "Connection refused"
        assert results[1].shifts == []
        assert results[0] == control[0]
        assert results[2] == control[2]

    @pytest.mark.asyncio
    async def test_timeout_does_not_delay_siblings(self, directory_factory, sample_rota_html):
        directory = directory_factory("Alpha", "Bravo")
        handler = routed_handler(sample_rota_html, slow={"alpha"})

        async with make_scraper(handler, timeout=0.1) as scraper:
            results = await asyncio.wait_for(scrape_all(directory, scraper=scraper), timeout=2)

        assert results[0].error_kind is ScrapeErrorKind.TIMEOUT
        assert results[1].ok
        assert len(results[1].shifts) == 2

    @pytest.mark.asyncio
    async def test_unexpected_exception_converted(self, directory_factory):
        """A raising scrape task becomes an error result."""
        directory = directory_factory("Alpha", "Bravo")

        class ExplodingScraper:
            def today(self):
                return TODAY

            async def scrape_clinic(self, clinic):
                if clinic.name == "Alpha":
                    raise ValueError("parser exploded")
                return ScrapeResult.success(clinic.name, [], last_updated=NOW)

        results = await scrape_all(directory, scraper=ExplodingScraper())

        assert results[0].error == "parser exploded"
        assert results[0].error_kind is ScrapeErrorKind.UNEXPECTED
        assert results[1].ok

    @pytest.mark.asyncio
    async def test_date_range_applied_to_output(self, directory_factory, sample_rota_html):
        directory = directory_factory("Alpha", "Bravo")
        handler = routed_handler(sample_rota_html, failing={"bravo"})
        date_range = DateRange(date(2026, 1, 1), date(2026, 1, 7))

        async with make_scraper(handler) as scraper:
            results = await scrape_all(directory, date_range, scraper=scraper)

        assert [s.date for s in results[0].shifts] == ["2026-01-05"]
        assert results[1].error == "Connection refused"

    @pytest.mark.asyncio
    async def test_empty_fleet(self):
        assert await scrape_all([]) == []

    @pytest.mark.asyncio
    async def test_creates_scraper_when_not_given(self, directory_factory, sample_rota_html):
        directory = directory_factory("Alpha")
        created = {}

        def factory(**kwargs):
            created.update(kwargs)
            return make_scraper(routed_handler(sample_rota_html), **kwargs)

        with patch("scrapers.orchestrator.ClinicScraper", side_effect=factory):
            results = await scrape_all(directory)

        assert results[0].ok
        assert len(results[0].shifts) == 2
        assert created["max_connections"] == 20

    @pytest.mark.asyncio
    async def test_own_scraper_has_a_slot_per_clinic(self, directory_factory, sample_rota_html):
        names = [f"Clinic {i}" for i in range(25)]
        created = {}

        def factory(**kwargs):
            created.update(kwargs)
            return make_scraper(routed_handler(sample_rota_html), **kwargs)

        with patch("scrapers.orchestrator.ClinicScraper", side_effect=factory):
            results = await scrape_all(directory_factory(*names))

        assert created["max_connections"] == 25
        assert all(r.ok for r in results)


@asynccontextmanager
async def serve_rota(html, hanging=()):
    """Local HTTP server on a free port; paths in hanging never answer."""
    async def handle(reader, writer):
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            path = head.split(b" ")[1].decode().strip("/")
            if path in hanging:
                # Hold the connection until the client drops it
                await asyncio.wait_for(reader.read(), timeout=5)
                return
            body = html.encode()
            writer.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: text/html\r\n"
                b"Content-Length: %d\r\n"
                b"Connection: close\r\n\r\n" % len(body)
                + body
            )
            await writer.drain()
        except (asyncio.IncompleteReadError, asyncio.TimeoutError, ConnectionError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        server.close()
        await server.wait_closed()


class TestConnectionSlots:
    """Fleet scrapes over real sockets through httpx's connection pool."""

    @pytest.mark.asyncio
    async def test_queued_clinic_gets_full_timeout(self, clinic_factory, sample_rota_html):
        """A healthy clinic queued behind hanging ones still succeeds."""
        async with serve_rota(sample_rota_html, hanging={"slow-a", "slow-b"}) as base:
            clinics = [
                clinic_factory(name, url=f"{base}/{name.lower().replace(' ', '-')}")
                for name in ("Slow A", "Slow B", "Fast")
            ]
            async with ClinicScraper(
                timeout=0.5,
                max_connections=2,
                today_provider=lambda: TODAY,
            ) as scraper:
                results = await scrape_all(clinics, scraper=scraper)

        assert [r.clinic for r in results] == ["Slow A", "Slow B", "Fast"]
        assert results[0].error_kind == ScrapeErrorKind.TIMEOUT
        assert results[1].error_kind == ScrapeErrorKind.TIMEOUT
        assert results[2].ok
        assert len(results[2].shifts) == 2

    @pytest.mark.asyncio
    async def test_fetches_within_slot_limit(self, clinic_factory, sample_rota_html):
        async with serve_rota(sample_rota_html) as base:
            clinics = [
                clinic_factory(f"Clinic {i}", url=f"{base}/clinic-{i}")
                for i in range(5)
            ]
            async with ClinicScraper(
                timeout=2,
                max_connections=2,
                today_provider=lambda: TODAY,
            ) as scraper:
                results = await scrape_all(clinics, scraper=scraper)

        assert all(r.ok for r in results)
