"""
Clinic Staffing Monitor - Date and Time Extraction Tests

Tests for pattern precedence, year inference, the plausibility window and
time normalisation.
"""

from datetime import date

import pytest

from scrapers.base import ShiftRecord
from scrapers.dates import (
    NO_MATCH,
    DateMatch,
    DateRange,
    TimeMatch,
    extract_date,
    extract_time,
    filter_shifts_by_range,
    format_date,
    infer_year,
    is_plausible,
    looks_like_datetime,
    match_date,
    match_time,
    plausible_year_range,
    resolve_date,
)


TODAY = date(2025, 12, 18)


# =============================================================================
# Pattern Matching
# =============================================================================

class TestMatchDate:
    """Tests for ordered date pattern matching."""

    @pytest.mark.parametrize("text,pattern", [
        ("Monday 5 January 2026", "weekday_day_month_name_year"),
        ("Monday 5th January 2026", "weekday_day_month_name_year"),
        ("Tuesday 06/01/2026", "weekday_day_month_year"),
        ("Tuesday 06/01", "weekday_day_month"),
        ("Wednesday 17 December", "weekday_day_month_name"),
        ("06/01/2026", "dd/mm/yyyy"),
        ("06-01-2026", "dd-mm-yyyy"),
        ("06.01.2026", "dd.mm.yyyy"),
        ("2026-01-06", "yyyy-mm-dd"),
        ("06/01", "dd/mm"),
        ("06-01", "dd-mm"),
        ("6th of January 2026", "dd_month_name_yyyy"),
        ("January 6, 2026", "month_name_dd_yyyy"),
    ])
    def test_first_matching_pattern_wins(self, text, pattern):
        """Each form is claimed by the most specific pattern."""
        match = match_date(text)

        assert isinstance(match, DateMatch)
        assert match.pattern == pattern

    def test_no_match_is_falsy_sentinel(self):
        """Text without a date returns NO_MATCH."""
        match = match_date("Volunteers confirmed")

        assert match is NO_MATCH
        assert not match

    def test_empty_text(self):
        """Empty text returns NO_MATCH."""
        assert match_date("") is NO_MATCH

    def test_fields_are_named(self):
        """Named fields are exposed on the match."""
        match = match_date("Friday 9 January 2026")

        assert match.fields == {"day": "9", "month_name": "January", "year": "2026"}
        assert match.token == "Friday 9 January 2026"

    def test_case_insensitive_names(self):
        """Weekday and month names match in any case."""
        assert extract_date("MONDAY 5 JANUARY 2026", TODAY) == date(2026, 1, 5)


# =============================================================================
# Year Inference
# =============================================================================

class TestInferYear:
    """Tests for year inference on yearless dates."""

    def test_past_date_rolls_to_next_year(self):
        """A date already past this year belongs to next year."""
        assert extract_date("Wednesday 17 December", TODAY) == date(2026, 12, 17)

    def test_year_end_months_always_next_year(self):
        """In November and December yearless dates are next year."""
        assert extract_date("Monday 5 January", TODAY) == date(2026, 1, 5)
        assert infer_year(12, 25, TODAY) == 2026
        assert infer_year(11, 30, date(2025, 11, 1)) == 2026

    def test_today_in_december_is_next_year(self):
        """Even today's date is pushed forward in December."""
        assert infer_year(12, 18, TODAY) == 2026

    def test_future_date_mid_year_stays_current(self):
        """A future date outside the year-end rules keeps this year."""
        assert infer_year(8, 10, date(2025, 6, 1)) == 2025

    def test_today_mid_year_stays_current(self):
        """Today's own date is not treated as past."""
        assert infer_year(6, 1, date(2025, 6, 1)) == 2025

    def test_past_date_mid_year_rolls_forward(self):
        """A past date mid-year belongs to next year."""
        assert infer_year(3, 10, date(2025, 6, 1)) == 2026

    def test_october_thirty_day_boundary(self):
        """In October, only dates more than 30 days out roll forward."""
        october = date(2025, 10, 1)

        assert infer_year(10, 31, october) == 2025
        assert infer_year(11, 1, october) == 2026

    def test_invalid_day_raises(self):
        """A month/day that is not a date raises ValueError."""
        with pytest.raises(ValueError):
            infer_year(2, 30, TODAY)


# =============================================================================
# Resolution and Plausibility
# =============================================================================

class TestResolveDate:
    """Tests for turning matches into calendar dates."""

    def test_explicit_year_kept(self):
        """A written year is used as-is."""
        resolved = resolve_date(match_date("06/01/2027"), TODAY)

        assert resolved.value == date(2027, 1, 6)
        assert resolved.inferred is False

    def test_inferred_year_flagged(self):
        """A yearless date is flagged as inferred."""
        resolved = resolve_date(match_date("Tuesday 06/01"), TODAY)

        assert resolved.value == date(2026, 1, 6)
        assert resolved.inferred is True

    def test_invalid_date_keeps_display_token(self):
        """Fields that are not a real date fall back to the raw token."""
        resolved = resolve_date(match_date("31/02/2026"), TODAY)

        assert resolved.value is None
        assert resolved.display == "31/02/2026"
        assert resolved.canonical == "31/02/2026"

    def test_invalid_yearless_date(self):
        """An impossible yearless date resolves without a value."""
        resolved = resolve_date(match_date("Monday 30/02"), TODAY)

        assert resolved.value is None
        assert resolved.display == "Monday 30/02"

    def test_extract_date_none_for_garbage(self):
        """extract_date returns None when nothing matches."""
        assert extract_date("No shifts this week", TODAY) is None


class TestPlausibility:
    """Tests for the plausible year window."""

    def test_window_in_december(self):
        """From November the window is next year only."""
        assert plausible_year_range(TODAY) == (2026, 2026)

    def test_window_mid_year(self):
        """Before November the window is this year and next."""
        assert plausible_year_range(date(2025, 6, 1)) == (2025, 2026)

    def test_previous_year_rejected(self):
        """Dates in an earlier year are implausible."""
        assert not is_plausible(date(2024, 6, 1), date(2025, 6, 1))

    def test_current_year_accepted_mid_year(self):
        """A date in the current year is plausible before November."""
        assert is_plausible(date(2025, 6, 1), date(2025, 6, 1))

    def test_two_years_ahead_rejected(self):
        """Dates more than a year ahead are implausible."""
        assert not is_plausible(date(2027, 1, 1), date(2025, 6, 1))


class TestCanonicalIdempotence:
    """Re-parsing the canonical form gives the same date."""

    @pytest.mark.parametrize("text", [
        "Monday 5 January 2026",
        "Wednesday 17 December",
        "Tuesday 13/01",
        "06.01.2026",
        "January 6, 2026",
        "2026-02-28",
    ])
    def test_reparse_canonical(self, text):
        first = extract_date(text, TODAY)

        assert first is not None
        assert extract_date(format_date(first), TODAY) == first


# =============================================================================
# Time Extraction
# =============================================================================

class TestExtractTime:
    """Tests for time normalisation to HH:MM."""

    @pytest.mark.parametrize("text,expected", [
        ("2:30pm", "14:30"),
        ("2:30 PM", "14:30"),
        ("12:15am", "00:15"),
        ("12pm", "12:00"),
        ("12am", "00:00"),
        ("9am", "09:00"),
        ("11 am", "11:00"),
        ("9.15", "09:15"),
        ("10:00", "10:00"),
        ("Session starts 17:45", "17:45"),
    ])
    def test_formats(self, text, expected):
        assert extract_time(text) == expected

    def test_no_time(self):
        """Text without a time returns None."""
        assert extract_time("Monday 5 January 2026") is None

    def test_match_reports_pattern(self):
        """The matched pattern name is exposed."""
        match = match_time("3pm")

        assert isinstance(match, TimeMatch)
        assert match.pattern == "h_ampm"
        assert (match.hour, match.minute) == (15, 0)

    def test_no_match_sentinel(self):
        assert match_time("no time here") is NO_MATCH


class TestLooksLikeDatetime:
    """Tests for the date/time cell heuristic."""

    @pytest.mark.parametrize("text", [
        "Shift Date",
        "Start time",
        "10:00",
        "13/01",
        "Saturday",
    ])
    def test_positive(self, text):
        assert looks_like_datetime(text)

    @pytest.mark.parametrize("text", ["Jane Smith (Optometrist)", "2pm", ""])
    def test_negative(self, text):
        assert not looks_like_datetime(text)


# =============================================================================
# Date Ranges
# =============================================================================

class TestDateRange:
    """Tests for inclusive date ranges and shift filtering."""

    def test_bounds_inclusive(self):
        date_range = DateRange(date(2026, 1, 1), date(2026, 1, 31))

        assert date_range.contains(date(2026, 1, 1))
        assert date_range.contains(date(2026, 1, 31))
        assert not date_range.contains(date(2026, 2, 1))

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            DateRange(date(2026, 2, 1), date(2026, 1, 1))

    def test_default_window(self):
        """The default window runs from today for 27 more days."""
        date_range = DateRange.default(TODAY, 27)

        assert date_range.start == TODAY
        assert date_range.end == date(2026, 1, 14)

    def test_filter_shifts(self):
        """Out-of-range and unparseable shifts are dropped."""
        shifts = [
            ShiftRecord("2026-01-05", "10:00", ["Optometrist"]),
            ShiftRecord("2026-03-01", "10:00", ["Optometrist"]),
            ShiftRecord("Some day", "10:00", ["Optometrist"]),
        ]
        date_range = DateRange(date(2026, 1, 1), date(2026, 1, 31))

        kept = filter_shifts_by_range(shifts, date_range, TODAY)

        assert [s.date for s in kept] == ["2026-01-05"]
