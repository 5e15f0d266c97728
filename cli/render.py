from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_ingest(payload: Dict[str, Any]) -> None:
    typer.secho(payload.get("message", "Reading accepted."), fg=typer.colors.GREEN)
    echo_key_values([("id", payload.get("id")), ("timestamp", payload.get("timestamp"))])


def render_readings(payload: Dict[str, Any]) -> None:
    echo_heading(f"Readings ({payload.get('count', 0)})")
    data = payload.get("data") or []
    if not data:
        typer.echo("No readings found.")
        return
    for item in data:
        typer.echo(
            f"  - {item.get('timestamp')} {item.get('deviceId')} "
            f"[{item.get('location')}]: {item.get('temperature')}°C, {item.get('humidity')}%"
        )


def render_statistics(payload: Dict[str, Any]) -> None:
    echo_heading(f"Statistics ({payload.get('timeRange')})")
    statistics = payload.get("statistics") or []
    if not statistics:
        typer.echo("No readings in this window.")
        return
    for entry in statistics:
        typer.echo()
        echo_heading(str(entry.get("deviceId")))
        echo_key_values(
            [
                ("location", entry.get("location")),
                ("dataPoints", entry.get("dataPoints")),
                ("lastReading", entry.get("lastReading")),
                (
                    "temperature",
                    f"avg {_fmt(entry.get('avgTemperature'))} / "
                    f"min {_fmt(entry.get('minTemperature'))} / "
                    f"max {_fmt(entry.get('maxTemperature'))}",
                ),
                (
                    "humidity",
                    f"avg {_fmt(entry.get('avgHumidity'))} / "
                    f"min {_fmt(entry.get('minHumidity'))} / "
                    f"max {_fmt(entry.get('maxHumidity'))}",
                ),
            ]
        )


def render_devices(payload: Dict[str, Any]) -> None:
    echo_heading(f"Devices ({payload.get('count', 0)})")
    devices = payload.get("devices") or []
    if not devices:
        typer.echo("No devices have reported yet.")
        return
    for device in devices:
        typer.echo(
            f"  - {device.get('deviceId')} [{device.get('location')}] "
            f"last seen {device.get('lastSeen')}: "
            f"{device.get('lastTemperature')}°C, {device.get('lastHumidity')}%"
        )


def render_health(payload: Dict[str, Any]) -> None:
    echo_heading("Health")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("timestamp", payload.get("timestamp")),
            ("uptime", payload.get("uptime")),
            ("storageConnected", payload.get("storageConnected")),
        ]
    )


def _fmt(value: Any) -> str:
    if isinstance(value, (int, float)):
        return f"{value:.2f}"
    return str(value)
