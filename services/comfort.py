"""Comfort verdicts for temperature, humidity and their combination with air quality."""

from __future__ import annotations

from typing import Any

from models.classification import (
    AirQuality,
    ClassificationResult,
    HumidityStatus,
    LegacyComfort,
    OverallComfort,
    TemperatureStatus,
)
from services.normalizer import as_finite

_CRITICAL_TEMPERATURES = {TemperatureStatus.hot, TemperatureStatus.cold}


def classify_temperature(value: Any) -> TemperatureStatus:
    celsius = as_finite(value)
    if celsius is None:
        return TemperatureStatus.unknown
    if celsius < 15:
        return TemperatureStatus.cold
    if celsius < 18:
        return TemperatureStatus.cool
    # 18-20 is a low-confidence band kept as Cool.
    if celsius < 20:
        return TemperatureStatus.cool
    if celsius <= 26:
        return TemperatureStatus.optimal
    if celsius <= 29:
        return TemperatureStatus.slightly_warm
    if celsius <= 32:
        return TemperatureStatus.warm
    return TemperatureStatus.hot


def classify_humidity(value: Any) -> HumidityStatus:
    """Bucket relative humidity; the >80 risk band must be checked before >70."""
    percent = as_finite(value)
    if percent is None:
        return HumidityStatus.unknown
    if percent > 80:
        return HumidityStatus.high_risk
    if 40 <= percent <= 60:
        return HumidityStatus.optimal
    if 30 <= percent < 40 or 60 < percent <= 70:
        return HumidityStatus.acceptable
    if percent < 30:
        return HumidityStatus.dry
    return HumidityStatus.humid


def overall_comfort(
    temperature: TemperatureStatus,
    humidity: HumidityStatus,
    air_quality: AirQuality,
) -> OverallComfort:
    if (
        temperature is TemperatureStatus.unknown
        or humidity is HumidityStatus.unknown
        or air_quality is AirQuality.unknown
    ):
        return OverallComfort.unknown

    if (
        temperature in _CRITICAL_TEMPERATURES
        or humidity is HumidityStatus.high_risk
        or air_quality is AirQuality.unhealthy
    ):
        return OverallComfort.unhealthy

    deviations = sum(
        (
            temperature is not TemperatureStatus.optimal,
            humidity is not HumidityStatus.optimal,
            air_quality is not AirQuality.good,
        )
    )
    if deviations == 0:
        return OverallComfort.comfortable
    if deviations == 1:
        return OverallComfort.acceptable
    return OverallComfort.needs_attention


def legacy_comfort(overall: OverallComfort) -> LegacyComfort:
    if overall in (OverallComfort.comfortable, OverallComfort.acceptable):
        return LegacyComfort.good
    if overall in (OverallComfort.needs_attention, OverallComfort.unhealthy):
        return LegacyComfort.warning
    return LegacyComfort.unknown


def assess_comfort(
    temperature: Any,
    humidity: Any,
    air_quality: AirQuality,
    delta_percent: float | None = None,
) -> ClassificationResult:
    temperature_status = classify_temperature(temperature)
    humidity_status = classify_humidity(humidity)
    return ClassificationResult(
        temperature_status=temperature_status,
        humidity_status=humidity_status,
        air_quality_status=air_quality,
        overall_comfort=overall_comfort(temperature_status, humidity_status, air_quality),
        air_quality_delta_percent=delta_percent,
    )
