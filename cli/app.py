from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_config, render_reading, render_recent, render_status


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the air comfort monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _load_payload(path: Path) -> Dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise typer.BadParameter(f"{path} must contain a JSON object.")
    return payload


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, readable=True, help="JSON file holding one reading."
    ),
    mq: Optional[float] = typer.Option(None, "--mq", help="Gas sensor raw value."),
    temp: Optional[float] = typer.Option(None, "--temp", help="Primary (BMP) temperature in C."),
    hum: Optional[float] = typer.Option(None, "--hum", help="Relative humidity in %."),
    pressure: Optional[float] = typer.Option(None, "--pressure", help="Station pressure in hPa."),
) -> None:
    """Send one reading, as a JSON file or from individual options."""
    state = _get_state(ctx)
    payload: Dict[str, Any] = _load_payload(file) if file is not None else {}
    overrides = {"mq_raw": mq, "bmp_temp": temp, "dht_hum": hum, "bmp_pressure": pressure}
    payload.update({key: value for key, value in overrides.items() if value is not None})
    if not payload:
        raise typer.BadParameter("Provide a JSON file or at least one reading option.")

    reading = state.client.send_reading(payload)
    typer.secho("Reading accepted.", fg=typer.colors.GREEN)
    typer.echo()
    render_reading(reading)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show whether the device is online."""
    state = _get_state(ctx)
    render_status(state.client.get_status())


@app.command("recent")
def recent_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of readings to show."),
) -> None:
    """List the most recent readings, newest first."""
    state = _get_state(ctx)
    render_recent(state.client.get_recent(limit))


@app.command("config")
def config_command(
    ctx: typer.Context,
    altitude: Optional[float] = typer.Option(None, "--altitude", help="New altitude in meters."),
    environment: Optional[str] = typer.Option(None, "--environment", help="New environment profile."),
) -> None:
    """Show the device configuration, updating it when options are given."""
    state = _get_state(ctx)
    changes: Dict[str, Any] = {}
    if altitude is not None:
        changes["altitude_m"] = altitude
    if environment is not None:
        changes["environment"] = environment
    payload = state.client.update_config(changes) if changes else state.client.get_config()
    render_config(payload)


@app.command("export")
def export_command(
    ctx: typer.Context,
    count: int = typer.Option(25, "--count", "-c", min=1, help="Number of readings to export."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", dir_okay=False, help="Write CSV here."),
) -> None:
    """Export recent readings as CSV."""
    state = _get_state(ctx)
    body = state.client.export_csv(count)
    if output is None:
        typer.echo(body, nl=False)
        return
    output.write_text(body, encoding="utf-8")
    typer.secho(f"Wrote {output}", fg=typer.colors.GREEN)
