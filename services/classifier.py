"""Per-reading classification pipeline.

``classify`` is the single entry point: it normalizes a raw payload,
resolves local time of day, updates the matching day/night baseline,
runs the air-quality state machine and aggregates comfort. All mutable
inputs live in the ``DeviceState`` passed in, so one state object per
device keeps devices independent. Calls against the same state must be
made strictly in arrival order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Mapping, Optional

from app.schemas import ComfortReport, DeviceConfig, EnrichedReading
from models.state import BaselineState
from services.air_quality import AirQualityClassifier
from services.baseline import BaselineEstimator
from services.comfort import assess_comfort, legacy_comfort
from services.normalizer import normalize
from services.pressure import sea_level_pressure
from services.time_of_day import TimeOfDayResolver, resolve_timezone
from settings import get_settings
from storage.history import DEFAULT_CAPACITY, RecentHistory

logger = logging.getLogger(__name__)


@dataclass
class DeviceState:
    """Everything one device's classification path owns."""

    device_id: str = "default"
    baseline: BaselineState = field(default_factory=BaselineState)
    history: RecentHistory = field(default_factory=lambda: RecentHistory(DEFAULT_CAPACITY))

    def copy(self) -> "DeviceState":
        return DeviceState(
            device_id=self.device_id,
            baseline=self.baseline.copy(),
            history=self.history.copy(),
        )


class ReadingClassifier:
    """Wires the pipeline stages together; holds no per-device state."""

    def __init__(
        self,
        resolver: TimeOfDayResolver,
        estimator: Optional[BaselineEstimator] = None,
        air_quality: Optional[AirQualityClassifier] = None,
    ) -> None:
        self.resolver = resolver
        self.estimator = estimator or BaselineEstimator()
        self.air_quality = air_quality or AirQualityClassifier()

    def classify(
        self,
        raw_reading: Mapping[str, Any],
        config: DeviceConfig,
        state: DeviceState,
        received_at: Optional[datetime] = None,
    ) -> EnrichedReading:
        received_at = received_at or datetime.now(timezone.utc)
        if received_at.tzinfo is None:
            received_at = received_at.replace(tzinfo=timezone.utc)
        reading = normalize(raw_reading, received_at)
        daytime = self.resolver.resolve(reading.device_timestamp, received_at)

        estimate = self.estimator.update(
            state.baseline,
            state.history.snapshot(),
            daytime.is_daytime,
            received_at,
        )
        verdict = self.air_quality.classify(reading.mq_raw, estimate.value, state.baseline)
        result = assess_comfort(
            reading.bmp_temp,
            reading.dht_hum,
            verdict.status,
            verdict.delta_percent,
        )

        enriched = EnrichedReading(
            received_at=received_at,
            device_timestamp=reading.device_timestamp,
            bmp_temp=reading.bmp_temp,
            dht_temp=reading.dht_temp,
            dht_hum=reading.dht_hum,
            bmp_pressure=reading.bmp_pressure,
            bmp_sealevel=sea_level_pressure(reading.bmp_pressure, config.altitude_m),
            mq_raw=reading.mq_raw,
            is_daytime=daytime.is_daytime,
            daytime_source=daytime.source,
            local_time=daytime.local_time,
            mq_baseline=estimate.value,
            mq_health=verdict.status,
            aq_high_streak=verdict.streak,
            baseline_source=estimate.source,
            day_baseline=state.baseline.day_baseline,
            night_baseline=state.baseline.night_baseline,
            comfort=ComfortReport(
                temperature=result.temperature_status,
                humidity=result.humidity_status,
                air_quality=result.air_quality_status,
                overall=result.overall_comfort,
                aq_delta_percent=result.air_quality_delta_percent,
            ),
            comfort_status_legacy=legacy_comfort(result.overall_comfort),
            environment=config.environment_profile,
        )
        state.history.append(enriched)

        logger.debug(
            "Classified reading",
            extra={
                "device_id": state.device_id,
                "daytime_source": daytime.source.value,
                "baseline_source": estimate.source.value,
                "mq_health": verdict.status.value,
                "streak": verdict.streak,
            },
        )
        return enriched


@lru_cache
def build_default_classifier() -> ReadingClassifier:
    settings = get_settings()
    tz = resolve_timezone(settings.timezone_name, settings.timezone_offset_minutes)
    return ReadingClassifier(resolver=TimeOfDayResolver(tz))


def classify(
    raw_reading: Mapping[str, Any],
    config: DeviceConfig,
    state: DeviceState,
    received_at: Optional[datetime] = None,
) -> EnrichedReading:
    """Classify one reading against ``state``, mutating it in place."""
    return build_default_classifier().classify(raw_reading, config, state, received_at)
