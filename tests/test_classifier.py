"""End-to-end tests for the per-reading classification pipeline."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.schemas import DeviceConfig
from models.classification import (
    AirQuality,
    BaselineSource,
    DaytimeSource,
    LegacyComfort,
    OverallComfort,
)
from models.state import BaselineState
from services.classifier import DeviceState, ReadingClassifier
from services.time_of_day import TimeOfDayResolver

NEPAL = timezone(timedelta(hours=5, minutes=45))
# 11:45 local.
DAY_START = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)
# 20:45 local.
NIGHT_START = datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)
CONFIG = DeviceConfig(altitude_m=1350.0, environment_profile="indoor")


@pytest.fixture()
def classifier() -> ReadingClassifier:
    return ReadingClassifier(resolver=TimeOfDayResolver(NEPAL))


def _feed(classifier: ReadingClassifier, state: DeviceState, values, start: datetime) -> list:
    return [
        classifier.classify({"mq_raw": value}, CONFIG, state, start + timedelta(minutes=i))
        for i, value in enumerate(values)
    ]


def test_cold_start_uses_fallback_baseline(classifier: ReadingClassifier) -> None:
    state = DeviceState()

    reading = classifier.classify(
        {"bmp_temp": 22, "dht_temp": 23, "dht_hum": 50, "mq_raw": 480},
        CONFIG,
        state,
        DAY_START,
    )

    assert reading.is_daytime is True
    assert reading.baseline_source is BaselineSource.fallback
    assert reading.mq_baseline == 480.0
    assert reading.day_baseline is None
    assert reading.mq_health is AirQuality.good
    assert reading.comfort.overall is OverallComfort.comfortable
    assert reading.comfort_status_legacy is LegacyComfort.good
    assert reading.environment == "indoor"
    assert len(state.history) == 1


def test_window_takes_over_after_ten_samples(classifier: ReadingClassifier) -> None:
    state = DeviceState()

    readings = _feed(classifier, state, [400] * 11, DAY_START)

    assert all(r.baseline_source is BaselineSource.fallback for r in readings[:10])
    last = readings[-1]
    assert last.baseline_source is BaselineSource.window_ema
    assert last.mq_baseline == pytest.approx(380.0)
    assert last.day_baseline == pytest.approx(380.0)
    assert last.night_baseline is None


def test_night_readings_use_night_bucket(classifier: ReadingClassifier) -> None:
    state = DeviceState(baseline=BaselineState(day_baseline=470.0))

    reading = classifier.classify({"mq_raw": 400}, CONFIG, state, NIGHT_START)

    assert reading.is_daytime is False
    assert reading.mq_baseline == 400.0
    assert reading.day_baseline == 470.0


def test_uptime_device_timestamp_falls_back_to_arrival(classifier: ReadingClassifier) -> None:
    state = DeviceState()

    reading = classifier.classify({"mq_raw": 400, "timestamp": 409}, CONFIG, state, DAY_START)

    assert reading.daytime_source is DaytimeSource.arrival
    assert reading.is_daytime is True


def test_legacy_payload_classified_with_primary_temperature(classifier: ReadingClassifier) -> None:
    state = DeviceState()

    reading = classifier.classify(
        {"temperature": 33, "humidity": 50, "gas": 480}, CONFIG, state, DAY_START
    )

    assert reading.bmp_temp == 33
    assert reading.dht_temp == 33
    assert reading.comfort.temperature.value == "Hot"
    assert reading.comfort.overall is OverallComfort.unhealthy
    assert reading.comfort_status_legacy is LegacyComfort.warning


def test_malformed_gas_value_degrades_only_air_quality(classifier: ReadingClassifier) -> None:
    state = DeviceState(baseline=BaselineState(high_deviation_streak=2))

    reading = classifier.classify(
        {"bmp_temp": 22, "dht_hum": 50, "mq_raw": "err"}, CONFIG, state, DAY_START
    )

    assert reading.mq_health is AirQuality.unknown
    assert reading.aq_high_streak == 2
    assert reading.comfort.temperature.value == "Optimal"
    assert reading.comfort.overall is OverallComfort.unknown
    assert reading.comfort.aq_delta_percent is None


HUGE = 10**400


@pytest.mark.parametrize(
    ("field", "check"),
    [
        ("mq_raw", lambda r: r.mq_health is AirQuality.unknown),
        ("bmp_temp", lambda r: r.comfort.temperature.value == "Unknown"),
        ("dht_hum", lambda r: r.comfort.humidity.value == "Unknown"),
        ("bmp_pressure", lambda r: r.bmp_sealevel is None),
        ("timestamp", lambda r: r.daytime_source is DaytimeSource.arrival),
    ],
)
def test_unconvertible_integer_degrades_field_without_dropping_reading(
    classifier: ReadingClassifier, field, check
) -> None:
    state = DeviceState()
    payload = {"bmp_temp": 22, "dht_hum": 50, "bmp_pressure": 865.0, "mq_raw": 480}
    payload[field] = HUGE

    reading = classifier.classify(payload, CONFIG, state, DAY_START)

    assert check(reading)
    assert state.history.latest() is reading


def test_sea_level_pressure_uses_configured_altitude(classifier: ReadingClassifier) -> None:
    state = DeviceState()

    reading = classifier.classify({"bmp_pressure": 865.0}, CONFIG, state, DAY_START)

    expected = round(865.0 / (1 - 1350.0 / 44330.0) ** 5.255, 2)
    assert reading.bmp_sealevel == expected


def test_replaying_same_snapshot_is_deterministic(classifier: ReadingClassifier) -> None:
    state = DeviceState()
    _feed(classifier, state, [400, 410, 395, 420, 405, 398, 402, 415, 390, 400, 407], DAY_START)
    payload = {"bmp_temp": 24.5, "dht_hum": 55, "mq_raw": 470, "timestamp": "2024-01-01T06:30:00Z"}
    received_at = DAY_START + timedelta(minutes=30)

    first_state = state.copy()
    second_state = state.copy()
    first = classifier.classify(payload, CONFIG, first_state, received_at)
    second = classifier.classify(payload, CONFIG, second_state, received_at)

    assert first == second
    assert first.model_dump(mode="json") == second.model_dump(mode="json")
    assert first_state.baseline == second_state.baseline
    assert len(state.history) == 11


def test_enriched_reading_serializes_with_public_field_names(classifier: ReadingClassifier) -> None:
    state = DeviceState()

    reading = classifier.classify({"mq_raw": 400, "dht_hum": 45}, CONFIG, state, DAY_START)
    payload = reading.model_dump(mode="json", by_alias=True)

    for key in (
        "isDaytime",
        "mqBaseline",
        "mqHealth",
        "aqHighStreak",
        "baselineSource",
        "dayBaseline",
        "nightBaseline",
        "comfortStatusLegacy",
        "environment",
        "mq_raw",
        "dht_hum",
    ):
        assert key in payload
    assert set(payload["comfort"]) == {
        "temperature",
        "humidity",
        "airQuality",
        "overall",
        "aqDeltaPercent",
    }
    assert payload["baselineSource"] == "adaptive/fallback"


def test_module_classify_uses_configured_timezone(monkeypatch) -> None:
    from services import classifier as classifier_module
    from settings import get_settings

    monkeypatch.setenv("MONITOR_TIMEZONE", "UTC")
    get_settings.cache_clear()
    classifier_module.build_default_classifier.cache_clear()
    try:
        state = DeviceState()
        # 06:00 UTC is still night when the device lives in UTC.
        reading = classifier_module.classify({"mq_raw": 400}, CONFIG, state, DAY_START)
    finally:
        classifier_module.build_default_classifier.cache_clear()
        get_settings.cache_clear()

    assert reading.is_daytime is False
    assert reading.mq_baseline == 400.0
    assert len(state.history) == 1
