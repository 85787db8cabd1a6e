"""
Clinic Staffing Monitor - Staffing Summary Tests
"""

from scrapers.base import ShiftRecord
from staffing.status import ClinicStatus, StaffingStatus
from staffing.summary import summarise_clinic, summarise_fleet


def status(name, roles_per_shift, computed=StaffingStatus.OPERATIONAL, error=None):
    return ClinicStatus(
        clinic=name,
        shifts=[ShiftRecord("2026-01-05", "10:00", roles) for roles in roles_per_shift],
        error=error,
        computed_status=computed,
    )


class TestSummariseClinic:

    def test_counts(self):
        clinic = status("Alpha", [
            ["Optometrist", "Assistant"],
            ["Optometrist"],
            ["Assistant"],
            [],
        ])

        staffing = summarise_clinic(clinic)

        assert staffing.total_shifts == 4
        assert staffing.fully_staffed_shifts == 1
        assert staffing.optometrists_needed == 2
        assert staffing.assistants_needed == 2

    def test_no_shifts(self):
        staffing = summarise_clinic(status("Alpha", []))

        assert staffing.total_shifts == 0
        assert staffing.optometrists_needed == 0


class TestSummariseFleet:

    def test_fleet_totals(self):
        fleet = [
            status("Alpha", [["Optometrist", "Assistant"], ["Optometrist"]]),
            status("Bravo", [["Assistant"]], computed=StaffingStatus.LIMITED),
            status("Charlie", [], computed=StaffingStatus.ERROR, error="down"),
        ]

        summary = summarise_fleet(fleet)

        assert summary.total_shifts == 3
        assert summary.functioning_shifts == 1
        assert summary.running_percentage == 33
        assert summary.optometrists_needed == 1
        assert summary.assistants_needed == 1
        assert summary.status_counts[StaffingStatus.OPERATIONAL] == 1
        assert summary.status_counts[StaffingStatus.LIMITED] == 1
        assert summary.status_counts[StaffingStatus.ERROR] == 1
        assert summary.status_counts[StaffingStatus.NON_FUNCTIONAL] == 0

    def test_percentage_rounds_half_up(self):
        fleet = [status("Alpha", [["Optometrist", "Assistant"]] + [[]] * 7)]

        assert summarise_fleet(fleet).running_percentage == 13

    def test_missing_status_counted_as_error(self):
        summary = summarise_fleet([status("Alpha", [], computed=None)])

        assert summary.status_counts[StaffingStatus.ERROR] == 1

    def test_empty_fleet(self):
        summary = summarise_fleet([])

        assert summary.running_percentage == 0
        assert summary.to_dict()["statusCounts"] == {
            "operational": 0,
            "limited": 0,
            "non-functional": 0,
            "error": 0,
        }
