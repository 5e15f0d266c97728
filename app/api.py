"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.dependencies import ServiceContainer, get_services
from app.schemas import (
    DevicesResponse,
    ErrorResponse,
    HealthResponse,
    IngestResponse,
    LatestResponse,
    RangeResponse,
    StatsResponse,
)
from services.errors import InvalidQuery
from services.query import DEFAULT_LATEST_LIMIT, DEFAULT_RANGE_LIMIT, DEFAULT_STATS_HOURS

router = APIRouter(responses={500: {"model": ErrorResponse}})
BAD_REQUEST = {400: {"model": ErrorResponse}}


def parse_limit(raw: Optional[str], default: int, maximum: int) -> int:
    """Parse a ``limit`` query value; anything above ``maximum`` is clamped."""
    if raw is None or not raw.strip():
        return min(default, maximum)
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise InvalidQuery("limit", raw, "expected an integer") from exc
    if value < 1:
        raise InvalidQuery("limit", raw, "must be at least 1")
    return min(value, maximum)


def parse_hours(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_STATS_HOURS
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise InvalidQuery("hours", raw, "expected a number") from exc
    if not value > 0 or value == float("inf"):
        raise InvalidQuery("hours", raw, "must be a positive number")
    return value


def parse_time(name: str, raw: Optional[str]) -> Optional[datetime]:
    if raw is None or not raw.strip():
        return None
    candidate = raw.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise InvalidQuery(name, raw, "expected an ISO-8601 timestamp") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise InvalidQuery(name, raw, "timestamp out of range") from exc


def _device_filter(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    return raw.strip() or None


@router.post(
    "/api/sensor-data",
    status_code=status.HTTP_201_CREATED,
    response_model=IngestResponse,
    responses=BAD_REQUEST,
    summary="Receive one reading from a sensor device.",
)
def ingest_sensor_data(
    payload: Any = Body(..., description="{deviceId, temperature, humidity, location?, timestamp?}"),
    services: ServiceContainer = Depends(get_services),
) -> IngestResponse:
    return services.ingestion.ingest(payload)


@router.get(
    "/api/sensor-data/latest",
    response_model=LatestResponse,
    responses=BAD_REQUEST,
    summary="Most recent readings, newest first.",
)
def latest_sensor_data(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    limit: Optional[str] = None,
    services: ServiceContainer = Depends(get_services),
) -> LatestResponse:
    resolved_limit = parse_limit(limit, DEFAULT_LATEST_LIMIT, services.settings.max_query_limit)
    return services.queries.latest(device_id=_device_filter(device_id), limit=resolved_limit)


@router.get(
    "/api/sensor-data/range",
    response_model=RangeResponse,
    responses=BAD_REQUEST,
    summary="Readings within an inclusive time window, newest first.",
)
def range_sensor_data(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    start_time: Optional[str] = Query(None, alias="startTime"),
    end_time: Optional[str] = Query(None, alias="endTime"),
    limit: Optional[str] = None,
    services: ServiceContainer = Depends(get_services),
) -> RangeResponse:
    return services.queries.range(
        device_id=_device_filter(device_id),
        start=parse_time("startTime", start_time),
        end=parse_time("endTime", end_time),
        limit=parse_limit(limit, DEFAULT_RANGE_LIMIT, services.settings.max_query_limit),
    )


@router.get(
    "/api/sensor-data/stats",
    response_model=StatsResponse,
    responses=BAD_REQUEST,
    summary="Per-device aggregates over the last N hours.",
)
def sensor_statistics(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    hours: Optional[str] = None,
    services: ServiceContainer = Depends(get_services),
) -> StatsResponse:
    return services.queries.statistics(device_id=_device_filter(device_id), hours=parse_hours(hours))


@router.get(
    "/api/devices",
    response_model=DevicesResponse,
    summary="Every known device with its most recent reading.",
)
def list_devices(services: ServiceContainer = Depends(get_services)) -> DevicesResponse:
    return services.queries.devices()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
)
def healthcheck(services: ServiceContainer = Depends(get_services)) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        uptime=services.uptime,
        storage_connected=services.store.is_open,
    )


@router.get("/metrics", summary="Prometheus exposition endpoint.")
def metrics(services: ServiceContainer = Depends(get_services)) -> Response:
    content, content_type = services.metrics.render()
    return Response(content=content, media_type=content_type)
