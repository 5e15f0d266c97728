"""Unit tests for the aggregation logic."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from models.records import Reading
from services.aggregator import Aggregator

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _reading(
    device_id: str,
    temperature: float,
    humidity: float = 50.0,
    minutes: int = 0,
    location: str = "Lab",
) -> Reading:
    """Helper to build deterministic readings."""

    return Reading(
        id=f"{device_id}-{minutes}-{temperature}",
        device_id=device_id,
        temperature=temperature,
        humidity=humidity,
        location=location,
        timestamp=BASE + timedelta(minutes=minutes),
        created_at=BASE,
    )


def test_aggregate_empty_iterable_returns_no_groups() -> None:
    assert Aggregator().aggregate([]) == []


def test_aggregate_computes_statistics_per_device() -> None:
    readings = [
        _reading("sensor-a", 20.0, humidity=40.0, minutes=0),
        _reading("sensor-b", 30.0, humidity=70.0, minutes=1),
        _reading("sensor-a", 22.0, humidity=50.0, minutes=2),
        _reading("sensor-a", 25.0, humidity=60.0, minutes=3),
    ]

    groups = Aggregator().aggregate(readings)

    assert [group.device_id for group in groups] == ["sensor-a", "sensor-b"]
    first = groups[0]
    assert first.data_points == 3
    assert first.avg_temperature == pytest.approx(22.333, abs=0.01)
    assert first.min_temperature == 20.0
    assert first.max_temperature == 25.0
    assert first.avg_humidity == pytest.approx(50.0)
    assert first.min_humidity == 40.0
    assert first.max_humidity == 60.0
    assert first.last_reading == BASE + timedelta(minutes=3)
    assert groups[1].data_points == 1


def test_location_comes_from_newest_reading_regardless_of_order() -> None:
    readings = [
        _reading("sensor-a", 20.0, minutes=5, location="Bedroom"),
        _reading("sensor-a", 21.0, minutes=1, location="Hallway"),
        _reading("sensor-a", 22.0, minutes=3, location="Kitchen"),
    ]

    for _ in range(5):
        random.shuffle(readings)
        (group,) = Aggregator().aggregate(readings)
        assert group.location == "Bedroom"
        assert group.last_reading == BASE + timedelta(minutes=5)
