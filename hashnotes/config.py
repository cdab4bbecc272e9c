from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import os

DEFAULT_TIME_LOCATION = "America/Los_Angeles"
DEFAULT_REFRESH_TIMEOUT = 120.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: Path
    time_location: str = DEFAULT_TIME_LOCATION
    dev_mode: bool = False
    refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Read settings from the environment on every call (tests flip env vars)."""
    env_path = os.getenv("HASHNOTES_DB_PATH")
    db_path = Path(env_path) if env_path else Path.home() / ".hashnotes" / "hashnotes.db"
    dev_mode = os.getenv("HASHNOTES_DEV", "").strip().lower() in _TRUTHY
    try:
        timeout = float(os.getenv("HASHNOTES_REFRESH_TIMEOUT", DEFAULT_REFRESH_TIMEOUT))
    except ValueError:
        timeout = DEFAULT_REFRESH_TIMEOUT
    level = os.getenv("HASHNOTES_LOG_LEVEL") or ("DEBUG" if dev_mode else "INFO")
    return Settings(
        db_path=db_path,
        time_location=os.getenv("HASHNOTES_TIME_LOCATION", DEFAULT_TIME_LOCATION),
        dev_mode=dev_mode,
        refresh_timeout=timeout,
        log_level=level.upper(),
    )


def resolve_location(name: Optional[str], default: str = DEFAULT_TIME_LOCATION) -> ZoneInfo:
    """
    Display time zone for one request. Nothing process-wide is changed;
    callers pass the result into whatever formats times.
    """
    key = (name or "").strip() or default
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"unknown time location: {key}") from e


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
