from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STATE_PATH_ENV = "MONITOR_STATE_PATH"
_CONFIG_PATH_ENV = "MONITOR_CONFIG_PATH"
_TIMEZONE_ENV = "MONITOR_TIMEZONE"
_TZ_OFFSET_ENV = "MONITOR_TZ_OFFSET_MINUTES"
_ONLINE_THRESHOLD_ENV = "DEVICE_ONLINE_THRESHOLD_SECONDS"
_CHECKPOINT_INTERVAL_ENV = "CHECKPOINT_INTERVAL_SECONDS"
_HISTORY_CAPACITY_ENV = "HISTORY_CAPACITY"
_DEFAULT_ALTITUDE_ENV = "MONITOR_DEFAULT_ALTITUDE_M"
_ENVIRONMENT_ENV = "MONITOR_ENVIRONMENT_PROFILE"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    state_path: Optional[str]
    config_path: Optional[str]
    timezone_name: str
    timezone_offset_minutes: int
    online_threshold_seconds: float
    checkpoint_interval_seconds: float
    history_capacity: int
    default_altitude_m: float
    environment_profile: str
    log_level: str


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


def _read_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _read_float(name: str, default: float, positive: bool = True) -> float:
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
    if positive and parsed <= 0:
        return default
    return parsed


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
        state_path=_read_optional_env(_STATE_PATH_ENV, "./tmp/adaptive_state.json"),
        config_path=_read_optional_env(_CONFIG_PATH_ENV, "./tmp/config.json"),
        timezone_name=_read_str_env(_TIMEZONE_ENV, "Asia/Kathmandu"),
        timezone_offset_minutes=_read_int(_TZ_OFFSET_ENV, 5 * 60 + 45),
        online_threshold_seconds=_read_float(_ONLINE_THRESHOLD_ENV, 90.0),
        checkpoint_interval_seconds=_read_float(_CHECKPOINT_INTERVAL_ENV, 300.0),
        history_capacity=_read_positive_int(_HISTORY_CAPACITY_ENV, 500),
        default_altitude_m=_read_float(_DEFAULT_ALTITUDE_ENV, 1350.0, positive=False),
        environment_profile=_read_str_env(_ENVIRONMENT_ENV, "indoor"),
        log_level=_read_log_level("INFO"),
    )
