"""Centralized configuration using pydantic-settings.

All configuration values are loaded from environment variables with sensible defaults.
Environment variables can be set in .env file or directly in the environment.

Usage:
    from service_health.config import get_settings
    settings = get_settings()
    print(settings.frontend_url)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # ==========================================================================
    # Targets
    # ==========================================================================
    backend_health_url: str = Field(
        default="http://localhost:4000/api/chat/health",
        description="Health endpoint of the primary API backend"
    )
    ai_service_health_url: str = Field(
        default="http://localhost:8000/health",
        description="Health endpoint of the AI query service"
    )
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Root page of the web frontend"
    )
    database_proxy_url: str = Field(
        default="http://localhost:4000/api/stats",
        description="Backend endpoint that only answers when the database is reachable"
    )
    services_file: Optional[Path] = Field(
        default=None,
        description="Optional YAML file replacing the built-in target list"
    )

    # ==========================================================================
    # Probing
    # ==========================================================================
    probe_timeout_seconds: float = Field(
        default=5.0,
        description="Per-probe timeout in seconds"
    )
    parallel_probes: bool = Field(
        default=False,
        description="Probe all targets concurrently instead of one after another"
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_to_file: bool = Field(
        default=False,
        description="Whether to write logs to file"
    )
    logs_dir: Path = Field(
        default_factory=lambda: _get_project_root() / "logs",
        description="Directory for log files"
    )

    # ==========================================================================
    # Notifications
    # ==========================================================================
    discord_webhook_url: Optional[str] = Field(
        default=None,
        description="Discord webhook URL for health alerts"
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("probe_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("probe_timeout_seconds must be positive")
        return v

    def ensure_directories(self) -> None:
        """Create the log directory when file logging is enabled."""
        if self.log_to_file:
            self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for performance.
    Call get_settings.cache_clear() to reload.
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
