"""Canonical reading record and the firmware payload schemas it is built from."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class SensorReading:
    """One normalized sample; values are passed through unvalidated."""

    received_at: datetime
    device_timestamp: Any = None
    bmp_temp: Any = None
    dht_temp: Any = None
    dht_hum: Any = None
    bmp_pressure: Any = None
    mq_raw: Any = None


@dataclass(frozen=True, slots=True)
class LegacyPayload:
    """Older firmware: a single combined temperature field."""

    temperature: Any = None
    humidity: Any = None
    pressure: Any = None
    gas: Any = None
    timestamp: Any = None

    def to_reading(self, received_at: datetime) -> SensorReading:
        return SensorReading(
            received_at=received_at,
            device_timestamp=self.timestamp,
            bmp_temp=self.temperature,
            dht_temp=self.temperature,
            dht_hum=self.humidity,
            bmp_pressure=self.pressure,
            mq_raw=self.gas,
        )


@dataclass(frozen=True, slots=True)
class DualSensorPayload:
    """Newer firmware: separate BMP (primary) and DHT (secondary) sensors."""

    bmp_temp: Any = None
    dht_temp: Any = None
    dht_hum: Any = None
    bmp_pressure: Any = None
    mq_raw: Any = None
    timestamp: Any = None

    def to_reading(self, received_at: datetime) -> SensorReading:
        return SensorReading(
            received_at=received_at,
            device_timestamp=self.timestamp,
            bmp_temp=self.bmp_temp,
            dht_temp=self.dht_temp,
            dht_hum=self.dht_hum,
            bmp_pressure=self.bmp_pressure,
            mq_raw=self.mq_raw,
        )


PayloadSchema = Union[LegacyPayload, DualSensorPayload]
