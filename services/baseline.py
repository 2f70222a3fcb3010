"""Adaptive day/night gas-sensor baselines."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from statistics import median
from typing import Iterable, Optional, Sequence

from app.schemas import EnrichedReading
from models.classification import BaselineSource
from models.state import BaselineState
from services.normalizer import as_finite

WINDOW = timedelta(hours=6)
MIN_SAMPLES = 10
TRIM_FRACTION = 0.10
# Pulls the estimate toward the clean-air floor; contamination skews windows upward.
CLEAN_AIR_FACTOR = 0.95
SMOOTHING_FACTOR = 0.15
DAY_FALLBACK = 480.0
NIGHT_FALLBACK = 400.0


@dataclass(frozen=True, slots=True)
class BaselineEstimate:
    value: float
    source: BaselineSource
    instant: Optional[float] = None
    sample_count: int = 0


def trimmed_mean(sorted_values: Sequence[float], fraction: float = TRIM_FRACTION) -> float:
    count = len(sorted_values)
    trim = int(count * fraction)
    if count - 2 * trim <= 0:
        trim = 0
    core = sorted_values[trim:count - trim]
    return sum(core) / len(core)


def instant_baseline(values: Iterable[float], min_samples: int = MIN_SAMPLES) -> Optional[float]:
    """Blend of trimmed mean and median, offset toward clean air.

    Returns ``None`` when fewer than ``min_samples`` values are available.
    """
    ordered = sorted(values)
    if not ordered or len(ordered) < min_samples:
        return None
    blended = (trimmed_mean(ordered) + median(ordered)) / 2.0
    return blended * CLEAN_AIR_FACTOR


def smooth(prior: Optional[float], instant: float, factor: float = SMOOTHING_FACTOR) -> float:
    if prior is None:
        return instant
    return prior * (1.0 - factor) + instant * factor


class BaselineEstimator:
    """Maintains one baseline per day/night bucket from a trailing window."""

    def __init__(
        self,
        window: timedelta = WINDOW,
        min_samples: int = MIN_SAMPLES,
        smoothing_factor: float = SMOOTHING_FACTOR,
        day_fallback: float = DAY_FALLBACK,
        night_fallback: float = NIGHT_FALLBACK,
    ) -> None:
        self.window = window
        self.min_samples = min_samples
        self.smoothing_factor = smoothing_factor
        self.day_fallback = day_fallback
        self.night_fallback = night_fallback

    def window_values(self, history: Iterable[EnrichedReading], now: datetime) -> list[float]:
        start = now - self.window
        values: list[float] = []
        for reading in history:
            if not start <= reading.received_at <= now:
                continue
            value = as_finite(reading.mq_raw)
            if value is not None:
                values.append(value)
        return values

    def update(
        self,
        state: BaselineState,
        history: Iterable[EnrichedReading],
        is_daytime: bool,
        now: datetime,
    ) -> BaselineEstimate:
        """Fold the current window into the matching bucket and return its baseline.

        Only the bucket selected by ``is_daytime`` is read or written.
        """
        values = self.window_values(history, now)
        instant = instant_baseline(values, self.min_samples)
        if instant is not None and (not math.isfinite(instant) or instant <= 0):
            instant = None

        prior = state.baseline_for(is_daytime)
        if instant is not None:
            updated = smooth(prior, instant, self.smoothing_factor)
            state.set_baseline(is_daytime, updated)
            return BaselineEstimate(
                value=updated,
                source=BaselineSource.window_ema,
                instant=instant,
                sample_count=len(values),
            )

        if prior is not None:
            value = prior
        else:
            value = self.day_fallback if is_daytime else self.night_fallback
        return BaselineEstimate(
            value=value,
            source=BaselineSource.fallback,
            sample_count=len(values),
        )
