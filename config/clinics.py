"""
Clinic Staffing Monitor - Clinic Directory

Loads the static list of clinics from config/clinics.yaml. The directory is
read once at process start and passed explicitly to the scrapers and the
fleet service; nothing in the application modifies it.

Usage:
    from config.clinics import get_clinic_directory

    directory = get_clinic_directory()
    for clinic in directory:
        print(clinic.name, clinic.url)
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

import yaml

from config.settings import get_settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Clinic:
    """A clinic whose rota page is scraped."""

    id: str
    name: str
    location: str
    url: str
    timezone: str = "Europe/London"


class ClinicDirectory:
    """
    Immutable, ordered collection of clinics.

    Iteration order is the configured order, which is also the order
    fleet results are reported in.
    """

    def __init__(self, clinics: Iterable[Clinic]):
        self._clinics: tuple[Clinic, ...] = tuple(clinics)

        ids = [c.id for c in self._clinics]
        names = [c.name for c in self._clinics]
        if len(set(ids)) != len(ids):
            raise ValueError("Clinic ids must be unique")
        if len(set(names)) != len(names):
            raise ValueError("Clinic names must be unique")

    def __iter__(self) -> Iterator[Clinic]:
        return iter(self._clinics)

    def __len__(self) -> int:
        return len(self._clinics)

    def __repr__(self) -> str:
        return f"<ClinicDirectory(clinics={len(self._clinics)})>"

    @property
    def clinics(self) -> tuple[Clinic, ...]:
        return self._clinics

    def names(self) -> list[str]:
        """Display names of all clinics, in directory order."""
        return [c.name for c in self._clinics]

    def get_by_id(self, clinic_id: str) -> Optional[Clinic]:
        for clinic in self._clinics:
            if clinic.id == clinic_id:
                return clinic
        return None

    def get_by_name(self, name: str) -> Optional[Clinic]:
        for clinic in self._clinics:
            if clinic.name == name:
                return clinic
        return None


def _clinic_from_config(entry: dict) -> Clinic:
    """Build a Clinic from one YAML entry."""
    missing = [key for key in ("id", "name", "url") if not entry.get(key)]
    if missing:
        raise ValueError(
            f"Clinic entry missing required field(s) {', '.join(missing)}: {entry!r}"
        )

    return Clinic(
        id=str(entry["id"]),
        name=str(entry["name"]),
        location=str(entry.get("location") or entry["name"]),
        url=str(entry["url"]),
        timezone=str(entry.get("timezone") or "Europe/London"),
    )


def load_clinic_directory(path: Optional[Union[str, Path]] = None) -> ClinicDirectory:
    """
    Load the clinic directory from a YAML file.

    Args:
        path: YAML file to read; defaults to the configured clinics_file

    Returns:
        ClinicDirectory in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If an entry is malformed
    """
    config_path = Path(path) if path else get_settings().get_clinics_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Clinic directory not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    entries = config.get("clinics", [])
    directory = ClinicDirectory(_clinic_from_config(entry) for entry in entries)

    logger.info(
        "Loaded clinic directory",
        extra={"path": str(config_path), "clinics": len(directory)},
    )
    return directory


@lru_cache()
def get_clinic_directory() -> ClinicDirectory:
    """Get the process-wide clinic directory, loading it on first use."""
    return load_clinic_directory()


__all__ = [
    "Clinic",
    "ClinicDirectory",
    "load_clinic_directory",
    "get_clinic_directory",
]
