"""Verdict enumerations and the per-reading classification record."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AirQuality(str, Enum):
    """Discrete air-quality states derived from gas-sensor deviation."""

    unknown = "Unknown"
    good = "Good"
    moderate = "Moderate"
    poor = "Poor"
    unhealthy = "Unhealthy"


class TemperatureStatus(str, Enum):
    unknown = "Unknown"
    cold = "Cold"
    cool = "Cool"
    optimal = "Optimal"
    slightly_warm = "Slightly Warm"
    warm = "Warm"
    hot = "Hot"


class HumidityStatus(str, Enum):
    unknown = "Unknown"
    high_risk = "High Humidity Risk"
    optimal = "Optimal"
    acceptable = "Acceptable"
    dry = "Dry"
    humid = "Humid"


class OverallComfort(str, Enum):
    unknown = "Unknown"
    comfortable = "Comfortable"
    acceptable = "Acceptable"
    needs_attention = "Needs Attention"
    unhealthy = "Unhealthy"


class LegacyComfort(str, Enum):
    """Two-valued comfort flag kept for older dashboard consumers."""

    good = "Good"
    warning = "Warning"
    unknown = "Unknown"


class BaselineSource(str, Enum):
    window_ema = "window+ema"
    fallback = "adaptive/fallback"


class DaytimeSource(str, Enum):
    device = "device"
    arrival = "arrival"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Comfort and air-quality verdicts computed once for a reading."""

    temperature_status: TemperatureStatus
    humidity_status: HumidityStatus
    air_quality_status: AirQuality
    overall_comfort: OverallComfort
    air_quality_delta_percent: Optional[float] = None
