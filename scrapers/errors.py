"""
Clinic Staffing Monitor - Error Types

Failures in the scrape pipeline are carried as data on ScrapeResult; these
types name the kind of failure so callers and logs can tell a timeout from a
parse problem without inspecting message text.
"""

import enum


class ScrapeErrorKind(enum.Enum):
    """Category of a failed clinic scrape."""
    TRANSPORT = "transport"        # DNS, connection refused, TLS, etc.
    TIMEOUT = "timeout"            # Per-clinic fetch timer expired
    HTTP_STATUS = "http_status"    # Non-2xx response
    PARSE = "parse"                # Page could not be parsed at all
    UNEXPECTED = "unexpected"      # Anything else raised while scraping


class ScrapeError(Exception):
    """
    Raised inside the fetcher when a rota page cannot be retrieved.

    Never escapes ClinicScraper.scrape_clinic; it is converted into an
    error-bearing ScrapeResult there.
    """

    def __init__(self, kind: ScrapeErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"<ScrapeError(kind={self.kind.value!r}, message={self.message!r})>"


class PersistenceError(Exception):
    """Raised by the cache and job-tracking stores when the database fails."""


class ClinicNotFoundError(LookupError):
    """Raised when a clinic name is not in the clinic directory."""

    def __init__(self, clinic_name: str):
        super().__init__(f"Clinic not found: {clinic_name}")
        self.clinic_name = clinic_name


__all__ = [
    "ScrapeErrorKind",
    "ScrapeError",
    "PersistenceError",
    "ClinicNotFoundError",
]
