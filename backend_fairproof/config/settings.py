"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate numeric settings and provide defaults for optional ones.
- Expose typed settings (upstream API base, retry policy, page size,
  verification fan-out, API host/port) for the history feed and API server.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_fairproof.config.env import env_str, get_api_base, get_verify_workers
from backend_fairproof.core.exceptions import ConfigError


@dataclass(frozen=True)
class Settings:
    """Typed service settings; build with get_settings()."""

    api_base: str
    request_timeout_sec: float = 15.0
    max_retries: int = 3
    min_retry_delay_sec: float = 0.5
    max_retry_delay_sec: float = 8.0
    page_size: int = 10
    verify_workers: int = 8
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"


def _float(name: str, default: float) -> float:
    raw = env_str(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise ConfigError(f"{name} must be non-negative")
    return value


def _int(name: str, default: int, minimum: int = 0) -> int:
    raw = env_str(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}")
    return value


def get_settings() -> Settings:
    """
    Return the current application settings.

    Raises:
        ConfigError: a numeric variable is not parseable or out of range.
    """
    return Settings(
        api_base=get_api_base(),
        request_timeout_sec=_float("FAIRPROOF_REQUEST_TIMEOUT_SEC", 15.0),
        max_retries=_int("FAIRPROOF_MAX_RETRIES", 3, minimum=1),
        min_retry_delay_sec=_float("FAIRPROOF_MIN_RETRY_DELAY_SEC", 0.5),
        max_retry_delay_sec=_float("FAIRPROOF_MAX_RETRY_DELAY_SEC", 8.0),
        page_size=_int("FAIRPROOF_PAGE_SIZE", 10, minimum=1),
        verify_workers=get_verify_workers(),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=_int("API_PORT", 8000, minimum=1),
        log_level=env_str("LOG_LEVEL", "INFO").upper(),
    )
