"""Configuration loading and validation."""

from .models import (
    # Enums
    Family,
    OutputFormat,
    # Config models
    AppConfig,
    ApiConfig,
    FamilyPolling,
    PollingConfig,
    LoggingConfig,
    DEFAULT_API_URL,
)
from .loader import ConfigError, default_config_text, expand_env, load_app_config

__all__ = [
    # Enums
    "Family",
    "OutputFormat",
    # Config models
    "AppConfig",
    "ApiConfig",
    "FamilyPolling",
    "PollingConfig",
    "LoggingConfig",
    "DEFAULT_API_URL",
    # Loaders
    "ConfigError",
    "default_config_text",
    "expand_env",
    "load_app_config",
]
