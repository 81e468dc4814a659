"""
app.yaml loading.

The file is optional: without one, studiolink runs on model defaults and
the STUDIOLINK_* environment variables. String values may reference the
environment as ${VAR} or ${VAR:-fallback}.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .models import AppConfig


DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

# ${NAME} or ${NAME:-fallback}
ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<fallback>[^}]*))?\}")


class ConfigError(Exception):
    """app.yaml is missing, unreadable or invalid.

    `details` carries the parser or validation output for display
    below the one-line message.
    """

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        super().__init__(message)
        self.path = path
        self.details = details


def expand_env(value: Any, environ: Mapping[str, str] | None = None) -> Any:
    """Substitute environment references in every string of a YAML tree."""
    env = os.environ if environ is None else environ

    if isinstance(value, str):
        return ENV_REFERENCE.sub(
            lambda m: env.get(m.group("name"), m.group("fallback") or ""),
            value,
        )
    if isinstance(value, dict):
        return {key: expand_env(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item, env) for item in value]
    return value


def read_config_mapping(path: Path) -> dict[str, Any]:
    """Parse a YAML file whose top level must be a mapping (or empty)."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}", path=path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}", path=path, details=str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", path=path, details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping at the top of {path}, got {type(data).__name__}",
            path=path,
        )
    return data


def load_app_config(
    path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build the AppConfig for a run.

    With no path, configs/app.yaml is used when present and defaults
    otherwise. An explicit path must exist.

    Raises:
        ConfigError: Missing explicit file, bad YAML or invalid values
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AppConfig()
        path = DEFAULT_CONFIG_PATH
    path = Path(path)

    data = expand_env(read_config_mapping(path), environ)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid app configuration in {path}", path=path, details=str(e)) from e


def default_config_text() -> str:
    """Text of the app.yaml written by `studiolink init`."""
    return """\
# studiolink configuration

api:
  api_key: ${STUDIOLINK_API_KEY}
  api_url: ${STUDIOLINK_API_URL:-https://api-aistudio.oxylabs.io}
  request_timeout_seconds: 30

# Wall-clock budget per run, measured from submission
polling:
  scrape:
    timeout_seconds: 120
    poll_interval_seconds: 5
  crawl:
    timeout_seconds: 600
    poll_interval_seconds: 5
  browse:
    timeout_seconds: 600
    poll_interval_seconds: 5
  search:
    timeout_seconds: 180
    poll_interval_seconds: 5

logging:
  level: INFO
  file: logs/studiolink.log
  json_format: true
  rich_console: true

# Record per-item errors instead of aborting the whole batch
continue_on_fail: false
"""
