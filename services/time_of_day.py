"""Day/night resolution for readings whose device clock cannot be trusted.

Device timestamps arrive in several shapes depending on firmware and on
whether the device managed to sync its clock:

* seconds since boot (small numbers, below ``1e9``),
* epoch seconds,
* epoch milliseconds,
* ISO-8601 strings.

Each shape is handled by one parse strategy; the strategies are tried in
order and the first that produces an instant wins. Anything none of them
accepts, or an instant that lands before the year 2000, falls back to the
arrival time stamped by the server.

Uptime seconds and small epoch-seconds values cannot be told apart. Values
below ``1e9`` (before September 2001) are therefore always treated as
uptime and discarded.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Any, Callable, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.classification import DaytimeSource

logger = logging.getLogger(__name__)

EPOCH_SECONDS_FLOOR = 1e9
EPOCH_MILLIS_FLOOR = 1e12
MIN_TRUSTED_YEAR = 2000
DAY_START_HOUR = 7
DAY_END_HOUR = 19
# len("YYYY-MM-DD")
_DATE_ONLY_LENGTH = 10

ParseStrategy = Callable[[Any], Optional[datetime]]


@dataclass(frozen=True, slots=True)
class DaytimeDecision:
    is_daytime: bool
    local_time: datetime
    source: DaytimeSource


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _from_epoch_millis(millis: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_epoch_seconds(value: Any) -> Optional[datetime]:
    number = _as_number(value)
    if number is None or not EPOCH_SECONDS_FLOOR <= number < EPOCH_MILLIS_FLOOR:
        return None
    return _from_epoch_millis(number * 1000.0)


def parse_epoch_millis(value: Any) -> Optional[datetime]:
    number = _as_number(value)
    if number is None or number < EPOCH_MILLIS_FLOOR:
        return None
    return _from_epoch_millis(number)


def parse_date_string(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string.

    Date-only strings are UTC midnight. A date-time without an offset is
    wall-clock time and comes back naive; the caller attaches the local zone.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        return parsed.astimezone(timezone.utc)
    if len(candidate) == _DATE_ONLY_LENGTH:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


DEFAULT_STRATEGIES: Sequence[ParseStrategy] = (
    parse_epoch_seconds,
    parse_epoch_millis,
    parse_date_string,
)


def interpret_device_timestamp(
    value: Any,
    strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES,
    local_tz: tzinfo = timezone.utc,
) -> Optional[datetime]:
    """Return the instant a device timestamp denotes, if trustworthy.

    Naive results are wall-clock times in ``local_tz``.
    """
    if value is None:
        return None
    for strategy in strategies:
        parsed = strategy(value)
        if parsed is None:
            continue
        if parsed.year <= MIN_TRUSTED_YEAR:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=local_tz)
        return parsed.astimezone(timezone.utc)
    return None


@lru_cache
def resolve_timezone(name: str, fallback_offset_minutes: int) -> tzinfo:
    """Load ``name`` from the zone database, or a fixed offset when unavailable."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Timezone data unavailable; using fixed offset of %s minutes",
            fallback_offset_minutes,
            extra={"reason": name},
        )
        return timezone(timedelta(minutes=fallback_offset_minutes))


def is_daytime_hour(hour: int) -> bool:
    return DAY_START_HOUR <= hour < DAY_END_HOUR


class TimeOfDayResolver:
    """Decides whether a reading was taken during local daytime."""

    def __init__(self, tz: tzinfo) -> None:
        self.tz = tz

    def resolve(self, device_timestamp: Any, received_at: datetime) -> DaytimeDecision:
        instant = interpret_device_timestamp(device_timestamp, local_tz=self.tz)
        source = DaytimeSource.device
        if instant is None:
            if device_timestamp is not None:
                logger.debug(
                    "Discarding device timestamp; using arrival time",
                    extra={"raw_value": device_timestamp, "daytime_source": DaytimeSource.arrival.value},
                )
            instant = received_at
            source = DaytimeSource.arrival

        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        local_time = instant.astimezone(self.tz)
        return DaytimeDecision(
            is_daytime=is_daytime_hour(local_time.hour),
            local_time=local_time,
            source=source,
        )
