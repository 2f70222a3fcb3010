"""Map firmware payloads onto the canonical reading record."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from models.records import DualSensorPayload, LegacyPayload, PayloadSchema, SensorReading

_TIMESTAMP_ALIASES = ("timestamp", "ts", "device_ts")

_DUAL_SENSOR_FIELDS: dict[str, Sequence[str]] = {
    "bmp_temp": ("bmp_temp",),
    "dht_temp": ("dht_temp",),
    "dht_hum": ("dht_hum", "humidity", "hum"),
    "bmp_pressure": ("bmp_pressure", "pressure"),
    "mq_raw": ("mq_raw", "mq", "gas"),
    "timestamp": _TIMESTAMP_ALIASES,
}

_LEGACY_FIELDS: dict[str, Sequence[str]] = {
    "temperature": ("temperature", "temp"),
    "humidity": ("humidity", "hum", "dht_hum"),
    "pressure": ("pressure", "bmp_pressure"),
    "gas": ("gas", "mq", "mq_raw"),
    "timestamp": _TIMESTAMP_ALIASES,
}

# Any of these marks a payload from dual-sensor firmware.
_DUAL_SENSOR_MARKERS = ("bmp_temp", "dht_temp")
_LEGACY_MARKERS = ("temperature", "temp")


def as_finite(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it does not parse."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            candidate = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            candidate = float(stripped)
        except ValueError:
            return None
    else:
        return None
    return candidate if math.isfinite(candidate) else None


def _pick(payload: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = payload.get(alias)
        if value is not None:
            return value
    return None


def _has_any(payload: Mapping[str, Any], keys: Sequence[str]) -> bool:
    return any(payload.get(key) is not None for key in keys)


def detect_schema(payload: Mapping[str, Any]) -> PayloadSchema:
    """Resolve a raw payload into exactly one of the known firmware schemas."""
    if not _has_any(payload, _DUAL_SENSOR_MARKERS) and _has_any(payload, _LEGACY_MARKERS):
        return LegacyPayload(
            **{name: _pick(payload, aliases) for name, aliases in _LEGACY_FIELDS.items()}
        )
    return DualSensorPayload(
        **{name: _pick(payload, aliases) for name, aliases in _DUAL_SENSOR_FIELDS.items()}
    )


def normalize(payload: Mapping[str, Any], received_at: datetime) -> SensorReading:
    return detect_schema(payload).to_reading(received_at)
