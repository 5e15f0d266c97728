"""Pydantic schemas for the HTTP API layer.

Fields are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.records import DeviceSummary, Reading


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadingOut(CamelModel):
    """A stored reading as returned by the query endpoints."""

    id: str
    device_id: str
    temperature: float
    humidity: float
    location: str
    timestamp: datetime
    created_at: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(
            id=reading.id,
            device_id=reading.device_id,
            temperature=reading.temperature,
            humidity=reading.humidity,
            location=reading.location,
            timestamp=reading.timestamp,
            created_at=reading.created_at,
        )


class IngestResponse(CamelModel):
    """Acknowledgement returned after a reading is persisted."""

    message: str = "Sensor data saved successfully"
    id: str
    timestamp: datetime


class LatestResponse(CamelModel):
    count: int = Field(..., ge=0)
    data: List[ReadingOut] = Field(default_factory=list)


class RangeFilter(CamelModel):
    """The resolved filter a range query ran with."""

    device_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    limit: int


class RangeResponse(CamelModel):
    count: int = Field(..., ge=0)
    query: RangeFilter
    data: List[ReadingOut] = Field(default_factory=list)


class DeviceStatistics(CamelModel):
    """Aggregates for one device over the requested window."""

    device_id: str
    avg_temperature: float
    min_temperature: float
    max_temperature: float
    avg_humidity: float
    min_humidity: float
    max_humidity: float
    data_points: int = Field(..., ge=1)
    last_reading: datetime
    location: str


class StatsResponse(CamelModel):
    time_range: str
    statistics: List[DeviceStatistics] = Field(default_factory=list)


class DeviceSummaryOut(CamelModel):
    device_id: str
    location: str
    last_seen: datetime
    last_temperature: float
    last_humidity: float

    @classmethod
    def from_summary(cls, summary: DeviceSummary) -> "DeviceSummaryOut":
        return cls(
            device_id=summary.device_id,
            location=summary.location,
            last_seen=summary.last_seen,
            last_temperature=summary.last_temperature,
            last_humidity=summary.last_humidity,
        )


class DevicesResponse(CamelModel):
    count: int = Field(..., ge=0)
    devices: List[DeviceSummaryOut] = Field(default_factory=list)


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    uptime: float = Field(..., description="Seconds since the service started.")
    storage_connected: bool


class ErrorResponse(CamelModel):
    error: str
    message: Optional[str] = None
