"""Aggregation logic for sensor readings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from models.records import Reading


@dataclass
class DeviceAggregate:
    """Running statistics for the readings of one device."""

    device_id: str
    data_points: int = 0
    temperature_total: float = 0.0
    humidity_total: float = 0.0
    min_temperature: float | None = None
    max_temperature: float | None = None
    min_humidity: float | None = None
    max_humidity: float | None = None
    last_reading: datetime | None = None
    last_created_at: datetime | None = None
    location: str | None = None

    @property
    def avg_temperature(self) -> float | None:
        if not self.data_points:
            return None
        return self.temperature_total / self.data_points

    @property
    def avg_humidity(self) -> float | None:
        if not self.data_points:
            return None
        return self.humidity_total / self.data_points

    def add(self, reading: Reading) -> None:
        self.data_points += 1
        self.temperature_total += reading.temperature
        self.humidity_total += reading.humidity

        if self.min_temperature is None or reading.temperature < self.min_temperature:
            self.min_temperature = reading.temperature
        if self.max_temperature is None or reading.temperature > self.max_temperature:
            self.max_temperature = reading.temperature
        if self.min_humidity is None or reading.humidity < self.min_humidity:
            self.min_humidity = reading.humidity
        if self.max_humidity is None or reading.humidity > self.max_humidity:
            self.max_humidity = reading.humidity

        # Location follows the newest observation, not arrival order.
        if self.last_reading is None or (reading.timestamp, reading.created_at) > (
            self.last_reading,
            self.last_created_at,
        ):
            self.last_reading = reading.timestamp
            self.last_created_at = reading.created_at
            self.location = reading.location


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[Reading]) -> List[DeviceAggregate]:
        """Group readings per device; results are sorted by device id."""
        groups: Dict[str, DeviceAggregate] = {}
        for reading in readings:
            group = groups.get(reading.device_id)
            if group is None:
                group = groups[reading.device_id] = DeviceAggregate(device_id=reading.device_id)
            group.add(reading)
        return [groups[device_id] for device_id in sorted(groups)]
