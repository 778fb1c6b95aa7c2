"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    database_timeout_seconds: float
    lock_timeout_seconds: float
    cancellation_deadline_hours: int
    full_refund_hours: int
    partial_refund_hours: int
    partial_refund_ratio: float
    notification_async: bool
    notification_workers: int
    seed_demo_data: bool
    demo_hotel_id: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests call ``get_settings.cache_clear()``."""
    return Settings(
        app_name=_env_str("APP_NAME", "Room Booking Engine"),
        app_version=_env_str("APP_VERSION", "1.0.0"),
        log_level=_env_str("LOG_LEVEL", "INFO"),
        database_path=Path(_env_str("DATABASE_PATH", "data/booking_engine.db")),
        database_timeout_seconds=_env_float("DATABASE_TIMEOUT_SECONDS", 10.0),
        lock_timeout_seconds=_env_float("LOCK_TIMEOUT_SECONDS", 5.0),
        cancellation_deadline_hours=_env_int("CANCELLATION_DEADLINE_HOURS", 24),
        full_refund_hours=_env_int("FULL_REFUND_HOURS", 48),
        partial_refund_hours=_env_int("PARTIAL_REFUND_HOURS", 24),
        partial_refund_ratio=_env_float("PARTIAL_REFUND_RATIO", 0.5),
        notification_async=_env_bool("NOTIFICATION_ASYNC", True),
        notification_workers=_env_int("NOTIFICATION_WORKERS", 2),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        demo_hotel_id=_env_str("DEMO_HOTEL_ID", "hotel-demo"),
    )
