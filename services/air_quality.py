"""Hysteresis state machine for gas-sensor air quality.

Deviation from the active baseline is bucketed into bands, and the next
state is looked up from ``(previous state, band)``. Entering a better
category needs a tighter deviation than staying in it, so readings
hovering near a boundary do not flicker. Sustained Poor readings beyond
the Moderate exit bound escalate to Unhealthy once a streak threshold is
reached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from models.classification import AirQuality
from models.state import BaselineState
from services.normalizer import as_finite

logger = logging.getLogger(__name__)

MIN_BASELINE = 5.0
ESCALATION_STREAK = 5


@dataclass(frozen=True, slots=True)
class Hysteresis:
    enter: float
    exit: float


GOOD = Hysteresis(enter=5.0, exit=6.0)
MODERATE = Hysteresis(enter=20.0, exit=22.0)


class DeviationBand(str, Enum):
    """Absolute percent deviation, bucketed by the hysteresis bounds."""

    good_enter = "<=good.enter"
    good_exit = "<=good.exit"
    moderate_enter = "<=moderate.enter"
    moderate_exit = "<=moderate.exit"
    beyond = ">moderate.exit"


def band_for(abs_deviation: float) -> DeviationBand:
    if abs_deviation <= GOOD.enter:
        return DeviationBand.good_enter
    if abs_deviation <= GOOD.exit:
        return DeviationBand.good_exit
    if abs_deviation <= MODERATE.enter:
        return DeviationBand.moderate_enter
    if abs_deviation <= MODERATE.exit:
        return DeviationBand.moderate_exit
    return DeviationBand.beyond


_G = AirQuality.good
_M = AirQuality.moderate
_P = AirQuality.poor

_FROM_GOOD = {
    DeviationBand.good_enter: _G,
    DeviationBand.good_exit: _G,
    DeviationBand.moderate_enter: _M,
    DeviationBand.moderate_exit: _P,
    DeviationBand.beyond: _P,
}
_FROM_MODERATE = {
    DeviationBand.good_enter: _G,
    DeviationBand.good_exit: _M,
    DeviationBand.moderate_enter: _M,
    DeviationBand.moderate_exit: _M,
    DeviationBand.beyond: _P,
}
# Poor, Unhealthy and Unknown all re-enter through the "enter" bounds.
_FROM_DEGRADED = {
    DeviationBand.good_enter: _G,
    DeviationBand.good_exit: _M,
    DeviationBand.moderate_enter: _M,
    DeviationBand.moderate_exit: _P,
    DeviationBand.beyond: _P,
}

TRANSITIONS: Dict[Tuple[AirQuality, DeviationBand], AirQuality] = {}
for _state, _row in (
    (AirQuality.good, _FROM_GOOD),
    (AirQuality.moderate, _FROM_MODERATE),
    (AirQuality.poor, _FROM_DEGRADED),
    (AirQuality.unhealthy, _FROM_DEGRADED),
    (AirQuality.unknown, _FROM_DEGRADED),
):
    for _band, _target in _row.items():
        TRANSITIONS[(_state, _band)] = _target


def deviation_percent(raw: float, baseline: float) -> float:
    return (raw - baseline) / baseline * 100.0


@dataclass(frozen=True, slots=True)
class AirQualityVerdict:
    status: AirQuality
    delta_percent: Optional[float]
    streak: int


class AirQualityClassifier:
    """Classifies gas readings against a baseline, tracking the escalation streak."""

    def __init__(self, escalation_streak: int = ESCALATION_STREAK, min_baseline: float = MIN_BASELINE) -> None:
        self.escalation_streak = escalation_streak
        self.min_baseline = min_baseline

    def classify(self, raw_value: Any, baseline: Optional[float], state: BaselineState) -> AirQualityVerdict:
        raw = as_finite(raw_value)
        usable_baseline = as_finite(baseline)
        if raw is None or usable_baseline is None or usable_baseline <= self.min_baseline:
            state.previous_air_quality = AirQuality.unknown
            return AirQualityVerdict(
                status=AirQuality.unknown,
                delta_percent=None,
                streak=state.high_deviation_streak,
            )

        delta = deviation_percent(raw, usable_baseline)
        band = band_for(abs(delta))
        status = TRANSITIONS[(state.previous_air_quality, band)]

        if status in (AirQuality.good, AirQuality.moderate):
            state.high_deviation_streak = 0
        elif band is DeviationBand.beyond:
            state.high_deviation_streak += 1
            if state.high_deviation_streak >= self.escalation_streak:
                if state.high_deviation_streak == self.escalation_streak:
                    logger.info(
                        "Sustained high gas deviation; escalating to Unhealthy",
                        extra={"streak": state.high_deviation_streak, "raw_value": raw},
                    )
                status = AirQuality.unhealthy

        state.previous_air_quality = status
        return AirQualityVerdict(
            status=status,
            delta_percent=delta,
            streak=state.high_deviation_streak,
        )
