"""
Clinic Staffing Monitor - Date and Time Extraction

Recognises date and time tokens in free-form rota cell text and normalises
them to calendar dates and 24-hour times.

Patterns are tried in a fixed order, most specific first, and the first
pattern that matches decides the result. Dates written without a year get
one inferred relative to an explicit "today", which every function here
takes as a parameter.

Usage:
    from datetime import date
    from scrapers.dates import extract_date, extract_time

    extract_date("Wednesday 17 December", today=date(2025, 12, 18))
    # date(2026, 12, 17)
    extract_time("2:30pm")
    # "14:30"
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Union

from scrapers.base import ShiftRecord


WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"
MONTHS = (
    "january|february|march|april|may|june|july|"
    "august|september|october|november|december"
)
MONTH_NUMBERS = {name: number for number, name in enumerate(MONTHS.split("|"), start=1)}

# Dates this many days ahead in October are taken to be next year's
OCTOBER_LOOKAHEAD_DAYS = 30


# =============================================================================
# Match Results
# =============================================================================

class NoMatch:
    """No pattern matched. Falsy, so `if match:` reads naturally."""

    __slots__ = ()

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = NoMatch()


@dataclass(frozen=True)
class DateMatch:
    """A date pattern hit: which pattern, its named fields, and the matched text."""

    pattern: str
    fields: dict[str, str]
    token: str


@dataclass(frozen=True)
class TimeMatch:
    """A time pattern hit, already converted to the 24-hour clock."""

    pattern: str
    hour: int
    minute: int

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class ResolvedDate:
    """
    Outcome of normalising a DateMatch.

    value is None when the fields do not form a real calendar date; display
    then holds the verbatim token so it can still be shown.
    """

    value: Optional[date]
    display: str
    year: Optional[int] = None
    inferred: bool = False

    @property
    def canonical(self) -> str:
        return self.value.isoformat() if self.value else self.display


# =============================================================================
# Pattern Tables
# =============================================================================

@dataclass(frozen=True)
class DatePattern:
    name: str
    regex: re.Pattern


DATE_PATTERNS: tuple[DatePattern, ...] = (
    # Weekday-led forms first ("Monday 5 January 2026", "Tue 14/01/2026")
    DatePattern(
        "weekday_day_month_name_year",
        re.compile(
            rf"(?:{WEEKDAYS})[\s\W]*(?P<day>\d{{1,2}})(?:st|nd|rd|th)?[\s\W]+"
            rf"(?P<month_name>{MONTHS})[\s\W]+(?P<year>\d{{4}})",
            re.I,
        ),
    ),
    DatePattern(
        "weekday_day_month_year",
        re.compile(
            rf"(?:{WEEKDAYS})[^\d]*(?P<day>\d{{1,2}})[/-](?P<month>\d{{1,2}})[/-](?P<year>\d{{4}})",
            re.I,
        ),
    ),
    DatePattern(
        "weekday_day_month",
        re.compile(
            rf"(?:{WEEKDAYS})[^\d]*(?P<day>\d{{1,2}})[/-](?P<month>\d{{1,2}})",
            re.I,
        ),
    ),
    DatePattern(
        "weekday_day_month_name",
        re.compile(
            rf"(?:{WEEKDAYS})[^\d]*(?P<day>\d{{1,2}})(?:st|nd|rd|th)?[^\d]+(?P<month_name>{MONTHS})",
            re.I,
        ),
    ),
    # Pure numeric forms
    DatePattern(
        "dd/mm/yyyy",
        re.compile(r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})"),
    ),
    DatePattern(
        "dd-mm-yyyy",
        re.compile(r"(?P<day>\d{1,2})-(?P<month>\d{1,2})-(?P<year>\d{4})"),
    ),
    DatePattern(
        "dd.mm.yyyy",
        re.compile(r"(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{4})"),
    ),
    DatePattern(
        "yyyy-mm-dd",
        re.compile(r"(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"),
    ),
    DatePattern(
        "dd/mm",
        re.compile(r"(?P<day>\d{1,2})/(?P<month>\d{1,2})"),
    ),
    DatePattern(
        "dd-mm",
        re.compile(r"(?P<day>\d{1,2})-(?P<month>\d{1,2})"),
    ),
    # Month names with a year
    DatePattern(
        "dd_month_name_yyyy",
        re.compile(
            rf"(?P<day>\d{{1,2}})[^\d]+(?P<month_name>{MONTHS})[^\d]+(?P<year>\d{{4}})",
            re.I,
        ),
    ),
    DatePattern(
        "month_name_dd_yyyy",
        re.compile(
            rf"(?P<month_name>{MONTHS})[^\d]+(?P<day>\d{{1,2}})[^\d]+(?P<year>\d{{4}})",
            re.I,
        ),
    ),
)


@dataclass(frozen=True)
class TimePattern:
    name: str
    regex: re.Pattern


TIME_PATTERNS: tuple[TimePattern, ...] = (
    TimePattern(
        "hh:mm_ampm",
        re.compile(r"(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*(?P<period>am|pm)?", re.I),
    ),
    TimePattern(
        "h_ampm",
        re.compile(r"(?P<hour>\d{1,2})\s*(?P<period>am|pm)", re.I),
    ),
    TimePattern(
        "hh.mm",
        re.compile(r"(?P<hour>\d{1,2})\.(?P<minute>\d{2})"),
    ),
    TimePattern(
        "hh:mm",
        re.compile(r"(?P<hour>\d{1,2}):(?P<minute>\d{2})"),
    ),
)

_DATETIME_HINT = re.compile(rf"\d{{1,2}}[:\-/]\d{{1,2}}|{WEEKDAYS}", re.I)


# =============================================================================
# Matching
# =============================================================================

def match_date(text: str) -> Union[DateMatch, NoMatch]:
    """
    Find the first date pattern that matches anywhere in text.

    Args:
        text: Free-form cell text

    Returns:
        DateMatch for the highest-priority pattern that hit, or NO_MATCH
    """
    if not text:
        return NO_MATCH

    for pattern in DATE_PATTERNS:
        m = pattern.regex.search(text)
        if m:
            fields = {k: v for k, v in m.groupdict().items() if v is not None}
            return DateMatch(pattern=pattern.name, fields=fields, token=m.group(0).strip())

    return NO_MATCH


def match_time(text: str) -> Union[TimeMatch, NoMatch]:
    """
    Find the first time pattern that matches anywhere in text.

    12am becomes 00, 12pm stays 12, other pm hours gain 12.
    """
    if not text:
        return NO_MATCH

    for pattern in TIME_PATTERNS:
        m = pattern.regex.search(text)
        if not m:
            continue

        fields = m.groupdict()
        hour = int(fields["hour"])
        minute = int(fields.get("minute") or 0)
        period = (fields.get("period") or "").lower()

        if period == "pm" and hour != 12:
            hour += 12
        elif period == "am" and hour == 12:
            hour = 0

        return TimeMatch(pattern=pattern.name, hour=hour, minute=minute)

    return NO_MATCH


def looks_like_datetime(text: str) -> bool:
    """Whether a cell plausibly holds a date or time worth parsing."""
    lowered = text.lower()
    return (
        "date" in lowered
        or "time" in lowered
        or bool(_DATETIME_HINT.search(text))
    )


# =============================================================================
# Year Inference and Plausibility
# =============================================================================

def infer_year(month: int, day: int, today: date) -> int:
    """
    Choose a year for a date written without one.

    Rota pages describe forward planning, so:
        - a date already past this year belongs to next year
        - in November and December every yearless date is next year
        - in October, dates more than 30 days out are next year
        - otherwise the current year

    Raises:
        ValueError: If month/day is not a valid date in the current year
    """
    current_year = today.year
    trial = date(current_year, month, day)
    days_ahead = (trial - today).days

    if days_ahead < 0:
        return current_year + 1
    if today.month >= 11:
        return current_year + 1
    if today.month == 10 and days_ahead > OCTOBER_LOOKAHEAD_DAYS:
        return current_year + 1
    return current_year


def plausible_year_range(today: date) -> tuple[int, int]:
    """Inclusive (min_year, max_year) a shift date may fall in."""
    min_year = today.year + 1 if today.month >= 11 else today.year
    return min_year, today.year + 1


def is_plausible_year(year: int, today: date) -> bool:
    min_year, max_year = plausible_year_range(today)
    return min_year <= year <= max_year


def is_plausible(value: date, today: date) -> bool:
    """Whether a shift date falls inside the plausibility window."""
    return is_plausible_year(value.year, today)


# =============================================================================
# Normalisation
# =============================================================================

def resolve_date(match: DateMatch, today: date) -> ResolvedDate:
    """
    Turn a DateMatch into a calendar date, inferring the year if absent.

    Args:
        match: Result of match_date
        today: Reference date for year inference

    Returns:
        ResolvedDate; value is None when the fields are not a real date
    """
    fields = match.fields
    day = int(fields["day"])
    if "month_name" in fields:
        month = MONTH_NUMBERS[fields["month_name"].lower()]
    else:
        month = int(fields["month"])

    inferred = "year" not in fields
    if inferred:
        try:
            year = infer_year(month, day, today)
        except ValueError:
            return ResolvedDate(value=None, display=match.token, inferred=True)
    else:
        year = int(fields["year"])

    try:
        value = date(year, month, day)
    except ValueError:
        return ResolvedDate(value=None, display=match.token, year=year, inferred=inferred)

    return ResolvedDate(value=value, display=match.token, year=year, inferred=inferred)


def extract_date(text: str, today: date) -> Optional[date]:
    """
    Extract a calendar date from free-form text.

    Re-parsing an ISO date (YYYY-MM-DD) yields the same date.

    Args:
        text: Cell text or a stored shift date
        today: Reference date for year inference

    Returns:
        date, or None if nothing matched or the match is not a real date
    """
    match = match_date(text)
    if not match:
        return None
    return resolve_date(match, today).value


def extract_time(text: str) -> Optional[str]:
    """Extract a 24-hour HH:MM time from free-form text."""
    match = match_time(text)
    if not match:
        return None
    return str(match)


def format_date(value: date) -> str:
    """Canonical display form of a shift date."""
    return value.isoformat()


# =============================================================================
# Date Ranges
# =============================================================================

@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Date range start {self.start} is after end {self.end}")

    @classmethod
    def default(cls, today: date, days: int = 27) -> "DateRange":
        """Today through today + days."""
        return cls(start=today, end=today + timedelta(days=days))

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


def filter_shifts_by_range(
    shifts: Iterable[ShiftRecord],
    date_range: DateRange,
    today: date,
) -> list[ShiftRecord]:
    """
    Keep shifts whose date falls inside date_range.

    Shift dates are re-parsed with extract_date; shifts whose date cannot
    be parsed are dropped.
    """
    kept = []
    for shift in shifts:
        value = extract_date(shift.date, today)
        if value is not None and date_range.contains(value):
            kept.append(shift)
    return kept


__all__ = [
    "NO_MATCH",
    "NoMatch",
    "DateMatch",
    "TimeMatch",
    "ResolvedDate",
    "DATE_PATTERNS",
    "TIME_PATTERNS",
    "match_date",
    "match_time",
    "looks_like_datetime",
    "infer_year",
    "plausible_year_range",
    "is_plausible_year",
    "is_plausible",
    "resolve_date",
    "extract_date",
    "extract_time",
    "format_date",
    "DateRange",
    "filter_shifts_by_range",
]
