from __future__ import annotations

from datetime import timedelta

import pytest

from datastore.reading_store import ReadingStore
from models.records import NormalizedReading
from services.query import QueryEngine


@pytest.fixture()
def store(clock) -> ReadingStore:
    return ReadingStore(name="test", clock=clock)


@pytest.fixture()
def engine(store: ReadingStore, clock) -> QueryEngine:
    return QueryEngine(store=store, clock=clock)


def _insert(
    store: ReadingStore,
    clock,
    device_id: str,
    temperature: float,
    minutes_ago: float,
    humidity: float = 50.0,
    location: str = "Lab",
) -> str:
    return store.insert(
        NormalizedReading(
            device_id=device_id,
            temperature=temperature,
            humidity=humidity,
            location=location,
            timestamp=clock.now - timedelta(minutes=minutes_ago),
        )
    )


def test_latest_shapes_count_and_data(store, engine, clock) -> None:
    for minutes_ago in (30, 20, 10):
        _insert(store, clock, "device-1", 20.0, minutes_ago)

    result = engine.latest(limit=2)

    assert result.count == 2
    assert [item.timestamp for item in result.data] == [
        clock.now - timedelta(minutes=10),
        clock.now - timedelta(minutes=20),
    ]


def test_latest_for_device_returns_just_ingested_reading(store, engine, clock) -> None:
    _insert(store, clock, "device-2", 18.0, 1)
    reading_id = _insert(store, clock, "device-1", 23.5, 0, humidity=41.0)

    result = engine.latest(device_id="device-1", limit=1)

    assert result.count == 1
    assert result.data[0].id == reading_id
    assert result.data[0].temperature == 23.5


def test_range_echoes_resolved_filter(store, engine, clock) -> None:
    for minutes_ago in range(10):
        _insert(store, clock, "device-1", 20.0, minutes_ago)
    start = clock.now - timedelta(minutes=5)
    end = clock.now - timedelta(minutes=2)

    result = engine.range(device_id="device-1", start=start, end=end, limit=100)

    assert result.count == 4
    assert result.query.device_id == "device-1"
    assert result.query.start_time == start
    assert result.query.end_time == end
    assert result.query.limit == 100
    assert all(start <= item.timestamp <= end for item in result.data)


def test_statistics_window_and_values(store, engine, clock) -> None:
    _insert(store, clock, "device-1", 10.0, minutes_ago=90)  # outside a one hour window
    _insert(store, clock, "device-1", 20.0, minutes_ago=50, humidity=40.0)
    _insert(store, clock, "device-1", 26.0, minutes_ago=5, humidity=60.0, location="Garage")

    result = engine.statistics(hours=1)

    assert result.time_range == "Last 1 hours"
    (stats,) = result.statistics
    assert stats.device_id == "device-1"
    assert stats.data_points == 2
    assert stats.min_temperature <= stats.avg_temperature <= stats.max_temperature
    assert stats.avg_temperature == pytest.approx(23.0)
    assert stats.avg_humidity == pytest.approx(50.0)
    assert stats.location == "Garage"
    assert stats.last_reading == clock.now - timedelta(minutes=5)


def test_statistics_are_not_truncated_by_range_limit(store, engine, clock) -> None:
    for index in range(1200):
        _insert(store, clock, "device-1", 20.0, minutes_ago=index / 100)

    (stats,) = engine.statistics().statistics

    assert stats.data_points == 1200


def test_statistics_filter_by_device(store, engine, clock) -> None:
    _insert(store, clock, "device-1", 20.0, 1)
    _insert(store, clock, "device-2", 30.0, 1)

    result = engine.statistics(device_id="device-2", hours=2.5)

    assert result.time_range == "Last 2.5 hours"
    assert [stats.device_id for stats in result.statistics] == ["device-2"]


def test_devices_uses_newest_reading_per_device(store, engine, clock) -> None:
    _insert(store, clock, "device-1", 21.0, minutes_ago=1, humidity=45.0, location="Office")
    _insert(store, clock, "device-1", 19.0, minutes_ago=30, humidity=55.0, location="Basement")
    _insert(store, clock, "device-2", 30.0, minutes_ago=3, humidity=20.0)

    result = engine.devices()

    assert result.count == 2
    first, second = result.devices
    assert first.device_id == "device-1"
    assert first.last_temperature == 21.0
    assert first.last_humidity == 45.0
    assert first.location == "Office"
    assert first.last_seen == clock.now - timedelta(minutes=1)
    assert second.device_id == "device-2"


def test_devices_empty_store(engine) -> None:
    result = engine.devices()

    assert result.count == 0
    assert result.devices == []


def test_end_to_end_scenario(store, engine, clock) -> None:
    for offset, temperature in enumerate([20.0, 22.0, 25.0]):
        _insert(store, clock, "device-1", temperature, minutes_ago=10 - offset)
    _insert(store, clock, "device-2", 30.0, minutes_ago=5)

    latest = engine.latest(limit=10)
    timestamps = [item.timestamp for item in latest.data]
    assert latest.count == 4
    assert timestamps == sorted(timestamps, reverse=True)

    assert engine.devices().count == 2

    stats = {item.device_id: item for item in engine.statistics(hours=24).statistics}
    device_one = stats["device-1"]
    assert device_one.avg_temperature == pytest.approx(22.33, abs=0.01)
    assert device_one.min_temperature == 20.0
    assert device_one.max_temperature == 25.0
    assert device_one.data_points == 3


def test_timestamps_are_utc(engine, store, clock) -> None:
    _insert(store, clock, "device-1", 20.0, 0)

    (item,) = engine.latest().data

    assert item.timestamp.tzinfo is not None
    assert item.timestamp.utcoffset() == timedelta(0)
    assert item.created_at == clock.now


@pytest.mark.parametrize("hours", [1e9, 1e20])
def test_statistics_window_past_datetime_min_reads_everything(store, engine, clock, hours) -> None:
    _insert(store, clock, "device-1", 20.0, minutes_ago=60 * 24 * 365)

    (stats,) = engine.statistics(hours=hours).statistics

    assert stats.data_points == 1
