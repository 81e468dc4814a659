"""
Pydantic configuration models for studiolink.

These models provide type-safe configuration with validation for:
- API credentials and endpoint
- Per-family polling budgets
- Logging settings
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


DEFAULT_API_URL = "https://api-aistudio.oxylabs.io"


# =============================================================================
# Enums
# =============================================================================


class Family(str, Enum):
    """Operation families offered by the remote service."""

    SCRAPE = "scrape"
    CRAWL = "crawl"
    BROWSE = "browse"
    SEARCH = "search"


class OutputFormat(str, Enum):
    """Result formats the remote service can produce."""

    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"
    SCREENSHOT = "screenshot"


# =============================================================================
# API Configuration
# =============================================================================


class ApiConfig(BaseModel):
    """Credential context for the remote API."""

    api_key: str = Field(
        default_factory=lambda: os.environ.get("STUDIOLINK_API_KEY", ""),
        description="API key sent as the x-api-key header",
    )
    api_url: str = Field(
        default_factory=lambda: os.environ.get("STUDIOLINK_API_URL", DEFAULT_API_URL),
        validate_default=True,
        description="Base URL of the API",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout for a single HTTP round trip",
    )

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoint paths are joined with a leading slash."""
        v = v.strip()
        if not v:
            return DEFAULT_API_URL
        return v.rstrip("/")


# =============================================================================
# Polling Configuration
# =============================================================================


class FamilyPolling(BaseModel):
    """Polling budget for one operation family."""

    timeout_seconds: float = Field(
        ge=0.0,
        description="Wall-clock budget measured from submission",
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Fixed wait between status checks",
    )


class PollingConfig(BaseModel):
    """Polling budgets used by the invocation driver."""

    scrape: FamilyPolling = Field(
        default_factory=lambda: FamilyPolling(timeout_seconds=120.0),
    )
    crawl: FamilyPolling = Field(
        default_factory=lambda: FamilyPolling(timeout_seconds=600.0),
    )
    browse: FamilyPolling = Field(
        default_factory=lambda: FamilyPolling(timeout_seconds=600.0),
    )
    search: FamilyPolling = Field(
        default_factory=lambda: FamilyPolling(timeout_seconds=180.0),
    )

    def for_family(self, family: Family | str) -> FamilyPolling:
        """Get the polling budget for a family."""
        return getattr(self, Family(family).value)


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def valid_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    continue_on_fail: bool = Field(
        default=False,
        description="Record per-item errors instead of aborting the batch",
    )
