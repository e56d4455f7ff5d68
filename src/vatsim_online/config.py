"""Runtime configuration for vatsim-online."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from vatsim_online.api import DEFAULT_TIMEOUT, STATUS_URL
from vatsim_online.refresher import DEFAULT_INTERVAL, MIN_INTERVAL

ENV_PREFIX = "VATSIM_ONLINE_"
DEFAULT_LOG_FILE = "vatsim_online.log"


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    status_url: str = STATUS_URL
    data_url: str | None = None
    refresh_interval: float = DEFAULT_INTERVAL
    request_timeout: float = DEFAULT_TIMEOUT
    log_file: str | None = DEFAULT_LOG_FILE
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.refresh_interval < MIN_INTERVAL:
            raise ValueError(f"refresh interval must be at least {MIN_INTERVAL} seconds")
        if self.request_timeout <= 0:
            raise ValueError("request timeout must be positive")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log level '{self.log_level}'")


def positive_float(value: str) -> float:
    """Parse a strictly positive number of seconds."""
    try:
        number = float(value)
    except ValueError as exc:
        raise ValueError(f"'{value}' is not a number") from exc
    if number <= 0:
        raise ValueError(f"'{value}' must be greater than zero")
    return number


def defaults_from_env(environ: Mapping[str, str] | None = None) -> dict[str, object]:
    """
    Read configuration defaults from ``VATSIM_ONLINE_*`` environment variables.

    Raises:
        ValueError: If a numeric variable does not hold a positive number.
    """
    environ = os.environ if environ is None else environ
    defaults: dict[str, object] = {}

    if interval := environ.get(f"{ENV_PREFIX}INTERVAL"):
        defaults["refresh_interval"] = positive_float(interval)
    if timeout := environ.get(f"{ENV_PREFIX}TIMEOUT"):
        defaults["request_timeout"] = positive_float(timeout)
    if data_url := environ.get(f"{ENV_PREFIX}DATA_URL"):
        defaults["data_url"] = data_url
    if log_file := environ.get(f"{ENV_PREFIX}LOG_FILE"):
        defaults["log_file"] = log_file
    if log_level := environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        defaults["log_level"] = log_level.upper()
    return defaults
