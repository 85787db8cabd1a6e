"""
Clinic Staffing Monitor - Staffing Summary

Shift-level staffing figures for a clinic and for the fleet: how many
shifts are fully staffed and how many optometrists and assistants are still
needed (one of each per shift).
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from scrapers.roles import has_role
from staffing.status import (
    ASSISTANT_ROLE,
    OPTOMETRIST_ROLE,
    ClinicStatus,
    StaffingStatus,
    is_fully_staffed,
)


@dataclass(frozen=True)
class ClinicStaffing:
    clinic: str
    total_shifts: int
    fully_staffed_shifts: int
    optometrists_needed: int
    assistants_needed: int


@dataclass
class FleetSummary:
    status_counts: dict[StaffingStatus, int] = field(default_factory=dict)
    total_shifts: int = 0
    functioning_shifts: int = 0
    running_percentage: int = 0
    optometrists_needed: int = 0
    assistants_needed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "statusCounts": {status.value: count for status, count in self.status_counts.items()},
            "totalShifts": self.total_shifts,
            "functioningShifts": self.functioning_shifts,
            "runningPercentage": self.running_percentage,
            "optometristsNeeded": self.optometrists_needed,
            "assistantsNeeded": self.assistants_needed,
        }


def summarise_clinic(status: ClinicStatus) -> ClinicStaffing:
    shifts = status.shifts
    with_optometrist = sum(1 for s in shifts if has_role(s.job_roles, OPTOMETRIST_ROLE))
    with_assistant = sum(1 for s in shifts if has_role(s.job_roles, ASSISTANT_ROLE))

    return ClinicStaffing(
        clinic=status.clinic,
        total_shifts=len(shifts),
        fully_staffed_shifts=sum(1 for s in shifts if is_fully_staffed(s)),
        optometrists_needed=max(0, len(shifts) - with_optometrist),
        assistants_needed=max(0, len(shifts) - with_assistant),
    )


def summarise_fleet(statuses: Iterable[ClinicStatus]) -> FleetSummary:
    """
    Aggregate staffing figures across clinics.

    Clinics without a computed status are counted as errors. The running
    percentage is fully staffed shifts over all shifts, rounded to an
    integer, and 0 when there are no shifts.
    """
    counts: Counter = Counter({status: 0 for status in StaffingStatus})
    summary = FleetSummary()

    for status in statuses:
        counts[status.computed_status or StaffingStatus.ERROR] += 1

        staffing = summarise_clinic(status)
        summary.total_shifts += staffing.total_shifts
        summary.functioning_shifts += staffing.fully_staffed_shifts
        summary.optometrists_needed += staffing.optometrists_needed
        summary.assistants_needed += staffing.assistants_needed

    summary.status_counts = dict(counts)
    if summary.total_shifts:
        # Halves round up
        summary.running_percentage = math.floor(
            summary.functioning_shifts / summary.total_shifts * 100 + 0.5
        )
    return summary


__all__ = [
    "ClinicStaffing",
    "FleetSummary",
    "is_fully_staffed",
    "summarise_clinic",
    "summarise_fleet",
]
