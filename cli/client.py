from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor data service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/sensor-data", json=payload)

    def latest(self, device_id: Optional[str] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._request(
            "GET",
            "/api/sensor-data/latest",
            params=_clean({"deviceId": device_id, "limit": limit}),
        )

    def statistics(self, device_id: Optional[str] = None, hours: Optional[float] = None) -> Dict[str, Any]:
        return self._request(
            "GET",
            "/api/sensor-data/stats",
            params=_clean({"deviceId": device_id, "hours": hours}),
        )

    def devices(self) -> Dict[str, Any]:
        return self._request("GET", "/api/devices")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error")
            if data.get("message"):
                detail = f"{detail} ({data['message']})"
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _clean(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}
