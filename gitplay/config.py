"""Configuration management for gitplay."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from .aggregator import DEFAULT_CONCURRENCY
from .contributions import DEFAULT_WINDOW_DAYS
from .forge_client import DEFAULT_MAX_PAGES, MAX_PAGE_SIZE
from .forges.github import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT


@dataclass
class Config:
    """Main configuration object."""

    token: str | None = None
    endpoint: str = DEFAULT_ENDPOINT
    window_days: int = DEFAULT_WINDOW_DAYS
    page_size: int = MAX_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    output: str | None = None


def _expand_env_vars(value: str) -> str:
    """Expand environment variable references in a string.

    Supports ${VAR_NAME} syntax. Returns the original string if the
    environment variable is not set.

    Args:
        value: String potentially containing ${VAR_NAME} references

    Returns:
        String with environment variables expanded
    """
    if not isinstance(value, str):
        return value

    pattern = re.compile(r"\$\{([^}]+)\}")

    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return pattern.sub(replacer, value)


def _expand_dict(data: dict) -> dict:
    """Expand environment variables in the string values of a dictionary."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _expand_dict(value)
        elif isinstance(value, str):
            result[key] = _expand_env_vars(value)
        else:
            result[key] = value
    return result


def _positive_int(raw: dict, key: str, default: int, maximum: int | None = None) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"'{key}' must be a positive integer, got {value!r}")
    if maximum is not None and value > maximum:
        raise ValueError(f"'{key}' must be at most {maximum}, got {value}")
    return value


def load_config(config_path: str | Path) -> Config:
    """Load and parse configuration from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        raw_config = yaml.safe_load(f)

    if not raw_config:
        raise ValueError("Configuration file is empty")

    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    raw_config = _expand_dict(raw_config)

    token = raw_config.get("token")
    # An unexpanded reference means the variable is not set.
    if isinstance(token, str) and (not token.strip() or token.startswith("${")):
        token = None

    timeout = raw_config.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"'timeout' must be a positive number, got {timeout!r}")

    return Config(
        token=token,
        endpoint=raw_config.get("endpoint") or DEFAULT_ENDPOINT,
        window_days=_positive_int(raw_config, "window_days", DEFAULT_WINDOW_DAYS),
        page_size=_positive_int(raw_config, "page_size", MAX_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        max_pages=_positive_int(raw_config, "max_pages", DEFAULT_MAX_PAGES),
        timeout=float(timeout),
        concurrency=_positive_int(raw_config, "concurrency", DEFAULT_CONCURRENCY),
        output=raw_config.get("output"),
    )
