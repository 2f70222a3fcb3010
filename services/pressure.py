from __future__ import annotations

from typing import Any, Optional

from services.normalizer import as_finite

# International barometric formula constants.
_SCALE_HEIGHT_M = 44330.0
_EXPONENT = 5.255


def sea_level_pressure(pressure_hpa: Any, altitude_m: float) -> Optional[float]:
    """Reduce station pressure to mean sea level, in hPa."""
    pressure = as_finite(pressure_hpa)
    altitude = as_finite(altitude_m)
    if pressure is None or altitude is None or altitude >= _SCALE_HEIGHT_M:
        return None
    return round(pressure / (1.0 - altitude / _SCALE_HEIGHT_M) ** _EXPONENT, 2)
