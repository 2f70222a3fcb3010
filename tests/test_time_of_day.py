from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.classification import DaytimeSource
from services.time_of_day import (
    TimeOfDayResolver,
    interpret_device_timestamp,
    is_daytime_hour,
    resolve_timezone,
)

NEPAL = timezone(timedelta(hours=5, minutes=45))
# 11:45 local, daytime.
DAY_ARRIVAL = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)
# 2024-01-01T01:00:00Z is 06:45 local, night.
NIGHT_EPOCH_SECONDS = 1704070800


@pytest.fixture()
def resolver() -> TimeOfDayResolver:
    return TimeOfDayResolver(NEPAL)


def test_uptime_seconds_are_discarded_in_favour_of_arrival(resolver: TimeOfDayResolver) -> None:
    decision = resolver.resolve(409, DAY_ARRIVAL)

    assert decision.source is DaytimeSource.arrival
    assert decision.is_daytime is True
    assert decision.local_time == DAY_ARRIVAL.astimezone(NEPAL)


def test_epoch_seconds_are_trusted(resolver: TimeOfDayResolver) -> None:
    decision = resolver.resolve(NIGHT_EPOCH_SECONDS, DAY_ARRIVAL)

    assert decision.source is DaytimeSource.device
    assert decision.is_daytime is False
    assert decision.local_time.hour == 6
    assert decision.local_time.minute == 45


def test_epoch_millis_are_trusted(resolver: TimeOfDayResolver) -> None:
    decision = resolver.resolve(NIGHT_EPOCH_SECONDS * 1000, DAY_ARRIVAL)

    assert decision.source is DaytimeSource.device
    assert decision.is_daytime is False


def test_iso_string_is_trusted(resolver: TimeOfDayResolver) -> None:
    decision = resolver.resolve("2024-01-01T01:00:00Z", DAY_ARRIVAL)

    assert decision.source is DaytimeSource.device
    assert decision.is_daytime is False


@pytest.mark.parametrize(
    "device_timestamp",
    [None, "not a date", "1999-06-01T12:00:00Z", 500_000_000, True, float("nan"), 10**400, -(10**400)],
)
def test_untrusted_timestamps_fall_back_to_arrival(resolver: TimeOfDayResolver, device_timestamp) -> None:
    decision = resolver.resolve(device_timestamp, DAY_ARRIVAL)

    assert decision.source is DaytimeSource.arrival
    assert decision.is_daytime is True


def test_offsetless_date_time_is_local_wall_clock(resolver: TimeOfDayResolver) -> None:
    # 06:30 in Kathmandu is still night even though 06:30Z would be daytime there.
    decision = resolver.resolve("2024-01-01T06:30:00", DAY_ARRIVAL)

    assert decision.source is DaytimeSource.device
    assert decision.is_daytime is False
    assert decision.local_time.hour == 6
    assert decision.local_time.minute == 30


def test_date_only_string_is_utc_midnight() -> None:
    assert interpret_device_timestamp("2024-01-01", local_tz=NEPAL) == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_interpret_device_timestamp_converts_seconds_to_utc_instant() -> None:
    assert interpret_device_timestamp(NIGHT_EPOCH_SECONDS) == datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc)
    assert interpret_device_timestamp(409) is None


@pytest.mark.parametrize(
    ("hour", "expected"),
    [(6, False), (7, True), (12, True), (18, True), (19, False), (0, False)],
)
def test_daytime_window_is_seven_to_nineteen(hour: int, expected: bool) -> None:
    assert is_daytime_hour(hour) is expected


def test_unknown_zone_falls_back_to_fixed_offset() -> None:
    tz = resolve_timezone("Not/AZone", 345)

    assert tz.utcoffset(None) == timedelta(minutes=345)
