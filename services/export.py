"""CSV export of the curated dashboard columns."""

from __future__ import annotations

import csv
import io
from datetime import tzinfo
from typing import Any, Callable, Iterable, Sequence, Tuple

from app.schemas import EnrichedReading
from services.normalizer import as_finite

DEFAULT_EXPORT_COUNT = 25


def _number(value: Any, digits: int = 1) -> str:
    parsed = as_finite(value)
    return "" if parsed is None else f"{parsed:.{digits}f}"


def _raw(value: Any) -> str:
    return "" if value is None else str(value)


Column = Tuple[str, Callable[[EnrichedReading, tzinfo], str]]

COLUMNS: Sequence[Column] = (
    ("Time", lambda r, tz: r.received_at.astimezone(tz).strftime("%H:%M:%S")),
    ("BMP T (C)", lambda r, tz: _number(r.bmp_temp)),
    ("DHT T (C)", lambda r, tz: _number(r.dht_temp)),
    ("Humidity (%)", lambda r, tz: _number(r.dht_hum)),
    ("Pressure (hPa)", lambda r, tz: _number(r.bmp_pressure)),
    ("SL Pressure (hPa)", lambda r, tz: _number(r.bmp_sealevel)),
    ("MQ Raw", lambda r, tz: _raw(r.mq_raw)),
    ("MQ Health", lambda r, tz: r.mq_health.value),
    ("Daytime", lambda r, tz: "Day" if r.is_daytime else "Night"),
    ("Comfort", lambda r, tz: r.comfort.overall.value),
    ("Env", lambda r, tz: r.environment),
)


def readings_to_csv(readings: Iterable[EnrichedReading], tz: tzinfo) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([label for label, _ in COLUMNS])
    for reading in readings:
        writer.writerow([render(reading, tz) for _, render in COLUMNS])
    return buffer.getvalue()
