"""
Clinic Staffing Monitor - Configuration Settings

Scraper, cache, scheduler and logging settings, read from environment
variables or a .env file at the project root. DATABASE_URL is optional:
without it the cache and job-tracking store are skipped and every request
scrapes the clinic rota pages live.

Usage:
    from config.settings import get_settings

    settings = get_settings()
    service = FleetStatusService(directory, freshness=settings.cache_freshness)
"""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Determine Project Root
# =============================================================================

def get_project_root() -> Path:
    """Get the project root directory."""
    # Start from this file's directory and go up to find the project root
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    # Fallback to the config directory's parent
    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = get_project_root()


# =============================================================================
# Settings Classes
# =============================================================================

class Settings(BaseSettings):
    """
    Application settings.

    Every field maps to an unprefixed environment variable of the same name
    (SCRAPE_TIMEOUT_SECONDS, CACHE_FRESHNESS_SECONDS, ...).
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # -------------------------------------------------------------------------
    # Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Application environment (development, test, staging, production)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (never enable in production)",
    )

    # -------------------------------------------------------------------------
    # Database (cache and job tracking)
    # -------------------------------------------------------------------------
    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy connection string; unset disables caching",
    )
    database_pool_size: int = Field(
        default=5,
        description="Connection pool size",
    )
    database_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections beyond pool size",
    )
    database_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements (for debugging)",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file: Optional[str] = Field(
        default="logs/app.log",
        description="Log file path (relative to project root or absolute)",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )
    log_max_bytes: int = Field(
        default=10_485_760,  # 10 MB
        description="Maximum log file size before rotation",
    )
    log_backup_count: int = Field(
        default=5,
        description="Number of backup log files to keep",
    )

    # -------------------------------------------------------------------------
    # Scraping
    # -------------------------------------------------------------------------
    scrape_timeout_seconds: float = Field(
        default=10.0,
        description="Per-clinic timeout for fetching a rota page",
    )
    scrape_max_connections: int = Field(
        default=20,
        description="Maximum concurrent HTTP connections across the fleet",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        ),
        description="User agent for rota page requests",
    )
    scrape_schedule_cron: str = Field(
        default="0 * * * *",
        description="Cron expression for the background fleet scrape",
    )

    # -------------------------------------------------------------------------
    # Cache and Reporting
    # -------------------------------------------------------------------------
    cache_freshness_seconds: int = Field(
        default=3600,
        description="Maximum cache age before a fleet-wide re-scrape is forced",
    )
    default_range_days: int = Field(
        default=27,
        description="Default reporting window length in days after today",
    )

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------
    clinics_file: str = Field(
        default="config/clinics.yaml",
        description="YAML file listing the clinic directory",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Ensure log format is valid."""
        v_lower = v.lower()
        if v_lower not in {"json", "text"}:
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'text'")
        return v_lower

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is valid."""
        valid_envs = {"development", "test", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v_lower

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank DATABASE_URL as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("scrape_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Timeouts must be positive."""
        if v <= 0:
            raise ValueError("scrape_timeout_seconds must be positive")
        return v

    @field_validator("cache_freshness_seconds", "scrape_max_connections")
    @classmethod
    def validate_positive(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @field_validator("default_range_days")
    @classmethod
    def validate_range_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("default_range_days cannot be negative")
        return v

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    @property
    def is_database_configured(self) -> bool:
        """Check if a cache/job-tracking database is configured."""
        return bool(self.database_url)

    @property
    def cache_freshness(self) -> timedelta:
        """Cache age at which the fleet is scraped again."""
        return timedelta(seconds=self.cache_freshness_seconds)

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return PROJECT_ROOT

    def get_log_file_path(self) -> Optional[Path]:
        """Get the absolute path to the log file."""
        if not self.log_file:
            return None
        log_path = Path(self.log_file)
        if log_path.is_absolute():
            return log_path
        return PROJECT_ROOT / log_path

    def get_clinics_path(self) -> Path:
        """Get the absolute path to the clinic directory file."""
        clinics_path = Path(self.clinics_file)
        if clinics_path.is_absolute():
            return clinics_path
        return PROJECT_ROOT / clinics_path


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are cached after first load. To reload settings (e.g., in tests),
    call get_settings.cache_clear() first.

    Returns:
        Settings instance with all configuration loaded
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing reload on next access."""
    get_settings.cache_clear()


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "PROJECT_ROOT",
]
