from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_NAME_ENV = "READINGS_STORE_NAME"
_STORE_PATH_ENV = "READINGS_PERSISTENCE_PATH"
_RETENTION_DAYS_ENV = "RETENTION_DAYS"
_SWEEP_SECONDS_ENV = "RETENTION_SWEEP_SECONDS"
_STORE_TIMEOUT_ENV = "STORE_TIMEOUT_SECONDS"
_MAX_LIMIT_ENV = "MAX_QUERY_LIMIT"
_ENVIRONMENT_ENV = "APP_ENV"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    store_name: str
    store_persistence_path: Optional[str]
    retention_days: int
    sweep_interval_seconds: float
    store_timeout_seconds: float
    max_query_limit: int
    environment: str
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_name=_read_str_env(_STORE_NAME_ENV, "sensor_readings"),
        store_persistence_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/readings.jsonl"),
        retention_days=_read_positive_int(_RETENTION_DAYS_ENV, 30),
        sweep_interval_seconds=_read_positive_float(_SWEEP_SECONDS_ENV, 60.0),
        store_timeout_seconds=_read_positive_float(_STORE_TIMEOUT_ENV, 5.0),
        max_query_limit=_read_positive_int(_MAX_LIMIT_ENV, 10000),
        environment=_read_str_env(_ENVIRONMENT_ENV, "production").lower(),
        log_level=_read_log_level("INFO"),
    )
