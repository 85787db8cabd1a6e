"""
Clinic Staffing Monitor - Configuration Package

This package provides configuration management for the application.

Modules:
    settings: Environment-based configuration using Pydantic
    logging: Structured logging with file output
    clinics: Static clinic directory loaded from clinics.yaml

Usage:
    from config.settings import get_settings
    from config.logging import setup_logging, get_logger
    from config.clinics import get_clinic_directory

    settings = get_settings()
    setup_logging()
    logger = get_logger(__name__)
"""

from config.settings import get_settings, Settings
from config.logging import setup_logging, get_logger, LogContext
from config.clinics import (
    Clinic,
    ClinicDirectory,
    get_clinic_directory,
    load_clinic_directory,
)

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "get_logger",
    "LogContext",
    "Clinic",
    "ClinicDirectory",
    "get_clinic_directory",
    "load_clinic_directory",
]
