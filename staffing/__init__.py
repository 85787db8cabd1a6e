"""
Clinic Staffing Monitor - Staffing Package

Turns scrape results into the staffing picture shown to callers.

Modules:
    status: Weekly coverage and the four-tier status classifier
    cache: Cache freshness rules and the persistence collaborator contracts
    summary: Shift-level staffing figures for clinics and the fleet
    service: FleetStatusService, the cache-or-live entry point

Usage:
    from staffing import FleetStatusService

    service = FleetStatusService(directory)
    snapshot = await service.get_fleet()
"""

from staffing.status import ClinicStatus, StaffingStatus, compute_status
from staffing.cache import CacheEntry, is_fleet_fresh, filter_entry_by_date_range
from staffing.summary import summarise_clinic, summarise_fleet
from staffing.service import FleetSnapshot, FleetStatusService

__all__ = [
    "ClinicStatus",
    "StaffingStatus",
    "compute_status",
    "CacheEntry",
    "is_fleet_fresh",
    "filter_entry_by_date_range",
    "summarise_clinic",
    "summarise_fleet",
    "FleetSnapshot",
    "FleetStatusService",
]
