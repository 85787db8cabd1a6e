"""
Clinic Staffing Monitor - Rota Table Extractor

Walks a parsed rota page and turns table rows into ShiftRecords.

Rota pages have no stable schema. The extractor looks for tables whose
header mentions "Shift Date" and falls back to every table in the document
when none does. Within a row, the first cell (and any other cell that looks
date- or time-bearing) is searched for a date and a time, and every cell is
searched for bracketed role labels.

Malformed markup never raises out of extract_shifts; a bad row is skipped
and a document that cannot be walked yields no shifts.
"""

import copy
import enum
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

from scrapers.base import ShiftRecord
from scrapers.dates import (
    extract_time,
    format_date,
    is_plausible,
    is_plausible_year,
    looks_like_datetime,
    match_date,
    resolve_date,
)
from scrapers.roles import extract_roles


logger = logging.getLogger(__name__)

HIDDEN_TAGS = ("script", "style", "noscript")
ROTA_HEADER_MARKER = "shift date"

_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# Row Outcomes
# =============================================================================

class RowKind(enum.Enum):
    SHIFT = "shift"
    SKIPPED = "skipped"
    EMPTY = "empty"


@dataclass(frozen=True)
class RowOutcome:
    """What a single table row produced."""

    kind: RowKind
    shift: Optional[ShiftRecord] = None
    reason: Optional[str] = None

    @classmethod
    def empty(cls) -> "RowOutcome":
        return cls(kind=RowKind.EMPTY)

    @classmethod
    def skipped(cls, reason: str) -> "RowOutcome":
        return cls(kind=RowKind.SKIPPED, reason=reason)


@dataclass
class ExtractionReport:
    """Shifts found on a page plus the rows skipped on the way."""

    shifts: list[ShiftRecord] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    rows_seen: int = 0


# =============================================================================
# Cell and Table Helpers
# =============================================================================

def cell_text(cell: Tag) -> str:
    """Visible text of a cell with scripts removed and whitespace collapsed."""
    clone = copy.copy(cell)
    for hidden in clone.find_all(HIDDEN_TAGS):
        hidden.decompose()
    return _WHITESPACE.sub(" ", clone.get_text()).strip()


def find_rota_tables(soup: BeautifulSoup) -> list[Tag]:
    """Tables whose header text mentions "Shift Date", else all tables."""
    tables = soup.find_all("table")
    rota_tables = [
        table for table in tables
        if ROTA_HEADER_MARKER in " ".join(
            th.get_text() for th in table.find_all("th")
        ).lower()
    ]

    if rota_tables:
        return rota_tables

    if tables:
        logger.debug("No explicit rota table found, falling back to all tables")
    return tables


def _iter_rows(tables: Iterable[Tag]) -> Iterable[Tag]:
    """Rows of every table, each row once even when tables are nested."""
    seen: set[int] = set()
    for table in tables:
        for row in table.find_all("tr"):
            if id(row) in seen:
                continue
            seen.add(id(row))
            yield row


# =============================================================================
# Row Extraction
# =============================================================================

def extract_row(cells: list[str], today: date) -> RowOutcome:
    """
    Build a ShiftRecord from the text of one row's cells.

    Args:
        cells: Cleaned cell texts in column order
        today: Reference date for year inference and the plausibility window

    Returns:
        RowOutcome: SHIFT with the record, SKIPPED with a reason when the
        date falls outside the plausibility window, EMPTY when the row has
        no date or time token.
    """
    date_match = None
    shift_time = None
    roles: list[str] = []

    for index, text in enumerate(cells):
        if index == 0 or looks_like_datetime(text):
            if date_match is None:
                found = match_date(text)
                if found:
                    date_match = found
            if shift_time is None:
                shift_time = extract_time(text)

        roles.extend(extract_roles(text))

    if date_match is None and shift_time is None:
        return RowOutcome.empty()

    if date_match is None:
        shift_date = format_date(today)
    else:
        resolved = resolve_date(date_match, today)
        if resolved.value is not None:
            if not is_plausible(resolved.value, today):
                return RowOutcome.skipped(
                    f"Date {resolved.value.isoformat()} outside plausible range"
                )
            shift_date = format_date(resolved.value)
        else:
            if resolved.year is not None and not resolved.inferred \
                    and not is_plausible_year(resolved.year, today):
                return RowOutcome.skipped(
                    f"Date {resolved.display!r} outside plausible range"
                )
            shift_date = resolved.display

    return RowOutcome(
        kind=RowKind.SHIFT,
        shift=ShiftRecord(date=shift_date, time=shift_time or "", job_roles=tuple(roles)),
    )


def extract_shifts_report(soup: BeautifulSoup, clinic_label: str, today: date) -> ExtractionReport:
    """
    Extract shifts from a parsed rota page, keeping skip information.

    Args:
        soup: Parsed document
        clinic_label: Clinic name, used only for logging
        today: Reference date

    Returns:
        ExtractionReport
    """
    report = ExtractionReport()

    try:
        rows = list(_iter_rows(find_rota_tables(soup)))
    except Exception as e:
        logger.warning(
            f"Could not walk rota tables for {clinic_label}: {e}",
            extra={"clinic": clinic_label},
        )
        return report

    for row_index, row in enumerate(rows, start=1):
        report.rows_seen += 1
        try:
            cells = [cell_text(cell) for cell in row.find_all(["td", "th"], recursive=False)]
            if not cells:
                continue

            outcome = extract_row(cells, today)
        except Exception as e:
            logger.warning(
                f"Failed to parse row {row_index} for {clinic_label}: {e}",
                extra={"clinic": clinic_label, "row": row_index},
            )
            continue

        if outcome.kind is RowKind.SHIFT:
            report.shifts.append(outcome.shift)
        elif outcome.kind is RowKind.SKIPPED:
            logger.debug(
                f"Skipping row {row_index}: {outcome.reason}",
                extra={"clinic": clinic_label, "row": row_index},
            )
            report.skipped.append(outcome.reason)

    logger.debug(
        f"Extracted {len(report.shifts)} shifts for {clinic_label}",
        extra={
            "clinic": clinic_label,
            "rows_seen": report.rows_seen,
            "shift_count": len(report.shifts),
            "skipped_count": len(report.skipped),
        },
    )
    return report


def extract_shifts(soup: BeautifulSoup, clinic_label: str, today: date) -> list[ShiftRecord]:
    """Extract shifts from a parsed rota page."""
    return extract_shifts_report(soup, clinic_label, today).shifts


__all__ = [
    "RowKind",
    "RowOutcome",
    "ExtractionReport",
    "cell_text",
    "find_rota_tables",
    "extract_row",
    "extract_shifts_report",
    "extract_shifts",
]
