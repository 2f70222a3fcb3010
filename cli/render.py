from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_HEALTH_COLORS = {
    "Good": typer.colors.GREEN,
    "Moderate": typer.colors.YELLOW,
    "Poor": typer.colors.RED,
    "Unhealthy": typer.colors.BRIGHT_RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Reading")
    echo_key_values(
        [
            ("receivedAt", payload.get("receivedAt")),
            ("bmp_temp", payload.get("bmp_temp")),
            ("dht_temp", payload.get("dht_temp")),
            ("dht_hum", payload.get("dht_hum")),
            ("bmp_pressure", payload.get("bmp_pressure")),
            ("bmp_sealevel", payload.get("bmp_sealevel")),
            ("mq_raw", payload.get("mq_raw")),
        ]
    )

    typer.echo()
    echo_heading("Air quality")
    health = payload.get("mqHealth") or "Unknown"
    typer.secho(f"mqHealth: {health}", fg=_HEALTH_COLORS.get(health))
    echo_key_values(
        [
            ("mqBaseline", payload.get("mqBaseline")),
            ("baselineSource", payload.get("baselineSource")),
            ("aqHighStreak", payload.get("aqHighStreak")),
            ("isDaytime", payload.get("isDaytime")),
            ("daytimeSource", payload.get("daytimeSource")),
        ]
    )

    comfort = payload.get("comfort") or {}
    typer.echo()
    echo_heading("Comfort")
    if comfort:
        echo_key_values(
            [
                ("temperature", comfort.get("temperature")),
                ("humidity", comfort.get("humidity")),
                ("airQuality", comfort.get("airQuality")),
                ("overall", comfort.get("overall")),
                ("aqDeltaPercent", comfort.get("aqDeltaPercent")),
            ]
        )
    else:
        typer.echo("No comfort verdict available.")


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Device status")
    online = bool(payload.get("online"))
    typer.secho(
        f"online: {'yes' if online else 'no'}",
        fg=typer.colors.GREEN if online else typer.colors.RED,
    )
    typer.echo(f"lastSeen: {payload.get('lastSeen') or '-'}")


def render_recent(readings: List[Dict[str, Any]]) -> None:
    echo_heading(f"Recent readings ({len(readings)})")
    if not readings:
        typer.echo("No readings yet.")
        return
    for reading in reversed(readings):
        comfort = reading.get("comfort") or {}
        typer.echo(
            f"  - {reading.get('receivedAt')}: mq={reading.get('mq_raw')} "
            f"air={reading.get('mqHealth')} comfort={comfort.get('overall')}"
        )


def render_config(payload: Dict[str, Any]) -> None:
    echo_heading("Config")
    echo_key_values(
        [
            ("altitude_m", payload.get("altitude_m")),
            ("environment", payload.get("environment")),
        ]
    )
