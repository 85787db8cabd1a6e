"""
Clinic Staffing Monitor - Test Configuration

Pytest fixtures and configuration for the test suite.
Provides a pinned "today", clinic and shift factories, sample rota pages
and in-memory SQLite sessions.
"""

import os
from datetime import date, datetime, timezone

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


# =============================================================================
# Environment Configuration
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Configure environment for testing."""
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("LOG_LEVEL", "WARNING")
    os.environ["DATABASE_URL"] = ""

    from config.settings import clear_settings_cache
    clear_settings_cache()

    yield

    clear_settings_cache()


# =============================================================================
# Dates
# =============================================================================

# Mid-December, so the year-end inference rules apply
TODAY = date(2025, 12, 18)
NOW = datetime(2025, 12, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def today():
    """Pinned reference date."""
    return TODAY


@pytest.fixture
def now():
    """Pinned reference time."""
    return NOW


# =============================================================================
# Sample Data Factories
# =============================================================================

@pytest.fixture
def clinic_factory():
    """Factory for creating Clinic records."""
    from config.clinics import Clinic

    def _create_clinic(name="Bristol", **kwargs):
        defaults = {
            "id": name.lower().replace(" ", "-"),
            "name": name,
            "location": name,
            "url": f"https://rota.example.com/{name.lower().replace(' ', '-')}",
        }
        defaults.update(kwargs)
        return Clinic(**defaults)
    return _create_clinic


@pytest.fixture
def directory_factory(clinic_factory):
    """Factory for creating ClinicDirectory instances from names."""
    from config.clinics import ClinicDirectory

    def _create_directory(*names):
        return ClinicDirectory(clinic_factory(name) for name in names)
    return _create_directory


@pytest.fixture
def shift_factory():
    """Factory for creating ShiftRecords."""
    from scrapers.base import ShiftRecord

    def _create_shift(shift_date="2026-01-05", time="10:00", roles=None):
        if roles is None:
            roles = ["Optometrist", "Assistant"]
        return ShiftRecord(date=shift_date, time=time, job_roles=tuple(roles))
    return _create_shift


# =============================================================================
# Sample Rota Pages
# =============================================================================

SAMPLE_ROTA_HTML = """
<html>
  <head>
    <script>var d = "Monday 01/01/2001";</script>
  </head>
  <body>
    <table class="layout"><tr><td>Menu 12/12</td></tr></table>
    <table class="rota">
      <thead>
        <tr><th>Shift Date</th><th>Session</th><th>Volunteers Confirmed</th></tr>
      </thead>
      <tbody>
        <tr>
          <td>Monday 5 January 2026</td>
          <td>10:00am</td>
          <td>Jane Smith (Optometrist) Tom Brown (Assistant)</td>
        </tr>
        <tr>
          <td>Tuesday 13/01</td>
          <td>14:00</td>
          <td>Ann Lee [Optometrist]</td>
        </tr>
        <tr>
          <td>Wednesday 14 January 2024</td>
          <td>09:00</td>
          <td>(Optometrist)</td>
        </tr>
        <tr>
          <td>Notes</td>
          <td>Bring ID</td>
          <td>(Receptionist)</td>
        </tr>
      </tbody>
    </table>
  </body>
</html>
"""


@pytest.fixture
def sample_rota_html():
    """Rota page with two valid shifts, one stale shift and a notes row."""
    return SAMPLE_ROTA_HTML


@pytest.fixture
def rota_transport(sample_rota_html):
    """httpx MockTransport serving the sample rota for every URL."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=sample_rota_html)
    return httpx.MockTransport(handler)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine shared across sessions."""
    from database.models import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    """Session factory bound to the in-memory engine."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def session(session_factory):
    """Create a new database session for each test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()
