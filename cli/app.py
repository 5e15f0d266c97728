from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_devices,
    render_health,
    render_ingest,
    render_readings,
    render_statistics,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the climate sensor data service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("ingest")
def ingest_command(
    ctx: typer.Context,
    device_id: str = typer.Option(..., "--device-id", "-d", help="Identifier of the reporting device."),
    temperature: float = typer.Option(..., "--temperature", "-t", help="Temperature in Celsius."),
    humidity: float = typer.Option(..., "--humidity", "-H", help="Relative humidity in percent."),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="Free-text location label."),
    timestamp: Optional[float] = typer.Option(
        None,
        "--timestamp",
        help="Observation time as Unix epoch seconds (defaults to server time).",
    ),
) -> None:
    """Submit a single reading, as a device would."""
    state = _get_state(ctx)
    payload: Dict[str, Any] = {
        "deviceId": device_id,
        "temperature": temperature,
        "humidity": humidity,
    }
    if location is not None:
        payload["location"] = location
    if timestamp is not None:
        payload["timestamp"] = timestamp
    render_ingest(state.client.send_reading(payload))


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    device_id: Optional[str] = typer.Option(None, "--device-id", "-d", help="Only this device."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Maximum readings to show."),
) -> None:
    """Show the most recent readings."""
    state = _get_state(ctx)
    render_readings(state.client.latest(device_id=device_id, limit=limit))


@app.command("stats")
def stats_command(
    ctx: typer.Context,
    device_id: Optional[str] = typer.Option(None, "--device-id", "-d", help="Only this device."),
    hours: Optional[float] = typer.Option(None, "--hours", help="Window size in hours (default 24)."),
) -> None:
    """Show per-device aggregates for a recent window."""
    state = _get_state(ctx)
    render_statistics(state.client.statistics(device_id=device_id, hours=hours))


@app.command("devices")
def devices_command(ctx: typer.Context) -> None:
    """List every device with its last reading."""
    state = _get_state(ctx)
    render_devices(state.client.devices())


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the service is up."""
    state = _get_state(ctx)
    render_health(state.client.health())


if __name__ == "__main__":
    app()
