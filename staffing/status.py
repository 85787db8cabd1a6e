"""
Clinic Staffing Monitor - Status Classifier

Classifies a clinic as operational, limited, non-functional or error from
its shift list.

Status reflects whether the clinic can run consistently week to week, not
how many sessions it has. Shifts are grouped into Sunday-start calendar
weeks; a week can run if at least one of its shifts has both an optometrist
and an assistant booked. The share of weeks that can run decides the tier:

    >= 75%  operational
    >= 50%  limited
    <  50%  non-functional

A clinic whose scrape failed is always "error"; a clinic with no shifts is
"non-functional".
"""

import enum
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Iterable, Optional

from scrapers.base import ScrapeResult, ShiftRecord, isoformat_utc, utc_now
from scrapers.dates import extract_date
from scrapers.roles import has_role


OPERATIONAL_THRESHOLD = 75.0
LIMITED_THRESHOLD = 50.0

OPTOMETRIST_ROLE = "optometrist"
ASSISTANT_ROLE = "assistant"


class StaffingStatus(str, enum.Enum):
    """Operational status tier of a clinic."""
    OPERATIONAL = "operational"
    LIMITED = "limited"
    NON_FUNCTIONAL = "non-functional"
    ERROR = "error"


@dataclass
class ClinicStatus:
    """
    Read-time view of one clinic: its (filtered) shifts and derived status.

    Never persisted.
    """

    clinic: str
    shifts: list[ShiftRecord] = field(default_factory=list)
    last_updated: datetime = field(default_factory=utc_now)
    error: Optional[str] = None
    computed_status: Optional[StaffingStatus] = None

    @classmethod
    def from_result(cls, result: ScrapeResult) -> "ClinicStatus":
        return cls(
            clinic=result.clinic,
            shifts=list(result.shifts),
            last_updated=result.last_updated,
            error=result.error,
        )

    def with_status(self, today: date) -> "ClinicStatus":
        """Copy with computed_status filled in."""
        return replace(self, computed_status=compute_status(self, today))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "clinic": self.clinic,
            "shifts": [shift.to_dict() for shift in self.shifts],
            "lastUpdated": isoformat_utc(self.last_updated),
        }
        if self.error is not None:
            data["error"] = self.error
        if self.computed_status is not None:
            data["computedStatus"] = self.computed_status.value
        return data


def is_fully_staffed(shift: ShiftRecord) -> bool:
    """Whether a shift has both an optometrist and an assistant."""
    return has_role(shift.job_roles, OPTOMETRIST_ROLE) and has_role(
        shift.job_roles, ASSISTANT_ROLE
    )


def week_key(value: date) -> tuple[int, str]:
    """Calendar year and Sunday-start week number."""
    return value.year, value.strftime("%U")


def weekly_coverage(shifts: Iterable[ShiftRecord], today: date) -> dict[tuple[int, str], bool]:
    """
    Map each week that has shifts to whether it can run.

    Shifts whose date cannot be parsed are ignored. A week stays runnable
    once any of its shifts is fully staffed.
    """
    weeks: dict[tuple[int, str], bool] = {}
    for shift in shifts:
        value = extract_date(shift.date, today)
        if value is None:
            continue
        key = week_key(value)
        weeks[key] = weeks.get(key, False) or is_fully_staffed(shift)
    return weeks


def classify_percentage(percentage: float) -> StaffingStatus:
    if percentage >= OPERATIONAL_THRESHOLD:
        return StaffingStatus.OPERATIONAL
    if percentage >= LIMITED_THRESHOLD:
        return StaffingStatus.LIMITED
    return StaffingStatus.NON_FUNCTIONAL


def running_week_percentage(shifts: Iterable[ShiftRecord], today: date) -> float:
    """Percentage of weeks with shifts that can run; 0 when there are none."""
    weeks = weekly_coverage(shifts, today)
    if not weeks:
        return 0.0
    return sum(1 for can_run in weeks.values() if can_run) / len(weeks) * 100


def compute_status(clinic: ClinicStatus, today: date) -> StaffingStatus:
    """
    Classify a clinic.

    Args:
        clinic: Clinic view with its shifts already filtered to the window
        today: Reference date for re-parsing shift dates

    Returns:
        StaffingStatus
    """
    if clinic.error:
        return StaffingStatus.ERROR
    if not clinic.shifts:
        return StaffingStatus.NON_FUNCTIONAL
    return classify_percentage(running_week_percentage(clinic.shifts, today))


__all__ = [
    "StaffingStatus",
    "ClinicStatus",
    "is_fully_staffed",
    "week_key",
    "weekly_coverage",
    "classify_percentage",
    "running_week_percentage",
    "compute_status",
]
