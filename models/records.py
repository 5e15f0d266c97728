"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


DEFAULT_LOCATION = "Unknown"


@dataclass(frozen=True, slots=True)
class NormalizedReading:
    """A validated observation that has not been persisted yet."""

    device_id: str
    temperature: float
    humidity: float
    location: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Reading:
    """A persisted, immutable sensor observation."""

    id: str
    device_id: str
    temperature: float
    humidity: float
    location: str
    timestamp: datetime
    created_at: datetime

    @classmethod
    def from_normalized(
        cls, reading: NormalizedReading, reading_id: str, created_at: datetime
    ) -> "Reading":
        return cls(
            id=reading_id,
            device_id=reading.device_id,
            temperature=reading.temperature,
            humidity=reading.humidity,
            location=reading.location,
            timestamp=reading.timestamp,
            created_at=created_at,
        )


@dataclass(frozen=True, slots=True)
class DeviceSummary:
    """Latest known state of a device, derived from its newest reading."""

    device_id: str
    location: str
    last_seen: datetime
    last_temperature: float
    last_humidity: float

    @classmethod
    def from_reading(cls, reading: Reading) -> "DeviceSummary":
        return cls(
            device_id=reading.device_id,
            location=reading.location or DEFAULT_LOCATION,
            last_seen=reading.timestamp,
            last_temperature=reading.temperature,
            last_humidity=reading.humidity,
        )
