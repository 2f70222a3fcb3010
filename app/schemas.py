"""Pydantic schemas for enriched readings, persisted state, and the HTTP API."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.classification import (
    AirQuality,
    BaselineSource,
    DaytimeSource,
    HumidityStatus,
    LegacyComfort,
    OverallComfort,
    TemperatureStatus,
)


class ComfortReport(BaseModel):
    """Per-dimension and overall comfort verdicts for one reading."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    temperature: TemperatureStatus
    humidity: HumidityStatus
    air_quality: AirQuality = Field(..., alias="airQuality")
    overall: OverallComfort
    aq_delta_percent: Optional[float] = Field(default=None, alias="aqDeltaPercent")


class EnrichedReading(BaseModel):
    """A normalized reading with its time-of-day, baseline and comfort enrichment."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    received_at: datetime = Field(..., alias="receivedAt")
    device_timestamp: Any = Field(default=None, alias="deviceTimestamp")
    bmp_temp: Any = None
    dht_temp: Any = None
    dht_hum: Any = None
    bmp_pressure: Any = None
    bmp_sealevel: Optional[float] = None
    mq_raw: Any = None
    is_daytime: bool = Field(..., alias="isDaytime")
    daytime_source: DaytimeSource = Field(..., alias="daytimeSource")
    local_time: datetime = Field(..., alias="localTime")
    mq_baseline: float = Field(..., alias="mqBaseline")
    mq_health: AirQuality = Field(..., alias="mqHealth")
    aq_high_streak: int = Field(..., alias="aqHighStreak")
    baseline_source: BaselineSource = Field(..., alias="baselineSource")
    day_baseline: Optional[float] = Field(default=None, alias="dayBaseline")
    night_baseline: Optional[float] = Field(default=None, alias="nightBaseline")
    comfort: ComfortReport
    comfort_status_legacy: LegacyComfort = Field(..., alias="comfortStatusLegacy")
    environment: str


class IngestResponse(BaseModel):
    status: str = "ok"
    reading: EnrichedReading


class DeviceStatus(BaseModel):
    """Whether the device has reported recently."""

    model_config = ConfigDict(populate_by_name=True)

    last_seen: Optional[datetime] = Field(default=None, alias="lastSeen")
    online: bool = False


class DeviceConfig(BaseModel):
    """User-editable device configuration."""

    model_config = ConfigDict(populate_by_name=True)

    altitude_m: float
    environment_profile: str = Field(..., alias="environment")

    @field_validator("altitude_m")
    @classmethod
    def _finite_altitude(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("altitude_m must be a finite number")
        return value


class StateSnapshot(BaseModel):
    """On-disk checkpoint of the adaptive baseline state."""

    model_config = ConfigDict(populate_by_name=True)

    day_baseline: Optional[float] = Field(default=None, alias="dayBaseline")
    night_baseline: Optional[float] = Field(default=None, alias="nightBaseline")
    aq_high_streak: int = Field(default=0, ge=0, alias="aqHighStreak")
    saved_at: datetime = Field(..., alias="savedAt")

    @field_validator("day_baseline", "night_baseline")
    @classmethod
    def _usable_baseline(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        if not math.isfinite(value) or value <= 0:
            return None
        return value

    @field_validator("saved_at")
    @classmethod
    def _aware_saved_at(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
