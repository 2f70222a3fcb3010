"""Adaptive state carried between readings of one device."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from models.classification import AirQuality


@dataclass
class BaselineState:
    """Day/night gas baselines plus the air-quality escalation counter.

    Mutated only by the per-reading classification step. A baseline, once
    set, is always a finite positive number.
    """

    day_baseline: Optional[float] = None
    night_baseline: Optional[float] = None
    high_deviation_streak: int = 0
    last_persisted_at: Optional[datetime] = None
    previous_air_quality: AirQuality = AirQuality.unknown

    def baseline_for(self, is_daytime: bool) -> Optional[float]:
        return self.day_baseline if is_daytime else self.night_baseline

    def set_baseline(self, is_daytime: bool, value: float) -> None:
        if is_daytime:
            self.day_baseline = value
        else:
            self.night_baseline = value

    def copy(self) -> "BaselineState":
        return replace(self)
