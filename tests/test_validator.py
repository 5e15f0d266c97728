"""Unit tests for payload validation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from services.errors import InvalidValue, MissingField, OutOfRange, ValidationError
from services.validator import validate

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _payload(**overrides):
    payload = {"deviceId": "device-1", "temperature": 21.5, "humidity": 40}
    payload.update(overrides)
    return payload


def test_valid_payload_is_normalized() -> None:
    reading = validate(_payload(location="Kitchen"), now=NOW)

    assert reading.device_id == "device-1"
    assert reading.temperature == 21.5
    assert reading.humidity == 40.0
    assert isinstance(reading.humidity, float)
    assert reading.location == "Kitchen"
    assert reading.timestamp == NOW


def test_defaults_location_and_timestamp() -> None:
    reading = validate(_payload(), now=NOW)

    assert reading.location == "Unknown"
    assert reading.timestamp == NOW


@pytest.mark.parametrize("location", [None, "", "   "])
def test_blank_location_falls_back_to_unknown(location) -> None:
    assert validate(_payload(location=location), now=NOW).location == "Unknown"


def test_epoch_seconds_timestamp_is_converted() -> None:
    reading = validate(_payload(timestamp=1700000000), now=NOW)

    assert reading.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_numeric_strings_are_coerced() -> None:
    reading = validate(
        _payload(temperature="-12.25", humidity=" 55 ", timestamp="1700000000.5"), now=NOW
    )

    assert reading.temperature == -12.25
    assert reading.humidity == 55.0
    assert reading.timestamp.microsecond == 500000


@pytest.mark.parametrize("field", ["deviceId", "temperature", "humidity"])
def test_missing_required_field(field: str) -> None:
    payload = _payload()
    del payload[field]

    with pytest.raises(MissingField) as excinfo:
        validate(payload, now=NOW)

    assert excinfo.value.field == field
    assert field in str(excinfo.value)


@pytest.mark.parametrize("device_id", ["", "   "])
def test_blank_device_id_counts_as_missing(device_id: str) -> None:
    with pytest.raises(MissingField):
        validate(_payload(deviceId=device_id), now=NOW)


def test_device_id_is_stripped() -> None:
    assert validate(_payload(deviceId="  esp32-a  "), now=NOW).device_id == "esp32-a"


@pytest.mark.parametrize(
    "field, value, bound",
    [
        ("temperature", 150, 100.0),
        ("temperature", -50.01, -50.0),
        ("humidity", 100.5, 100.0),
        ("humidity", -1, 0.0),
    ],
)
def test_out_of_range_values(field: str, value: float, bound: float) -> None:
    with pytest.raises(OutOfRange) as excinfo:
        validate(_payload(**{field: value}), now=NOW)

    assert excinfo.value.field == field
    assert excinfo.value.value == float(value)
    assert excinfo.value.bound == bound


@pytest.mark.parametrize(
    "temperature, humidity",
    [(-50, 0), (100, 100), (0, 50.5)],
)
def test_bounds_are_inclusive(temperature: float, humidity: float) -> None:
    reading = validate(_payload(temperature=temperature, humidity=humidity), now=NOW)

    assert reading.temperature == float(temperature)
    assert reading.humidity == float(humidity)


@pytest.mark.parametrize("value", ["hot", True, float("nan"), float("inf"), [21], {"v": 1}])
def test_non_numeric_temperature_is_rejected(value) -> None:
    with pytest.raises(InvalidValue) as excinfo:
        validate(_payload(temperature=value), now=NOW)

    assert excinfo.value.field == "temperature"


def test_non_string_device_id_is_rejected() -> None:
    with pytest.raises(InvalidValue):
        validate(_payload(deviceId=42), now=NOW)


@pytest.mark.parametrize("timestamp", ["yesterday", 1e20])
def test_bad_timestamp_is_rejected(timestamp) -> None:
    with pytest.raises(InvalidValue) as excinfo:
        validate(_payload(timestamp=timestamp), now=NOW)

    assert excinfo.value.field == "timestamp"


def test_non_mapping_payload_is_rejected() -> None:
    with pytest.raises(ValidationError):
        validate(["device-1", 20, 40], now=NOW)


def test_validation_does_not_mutate_input() -> None:
    payload = _payload(temperature="20")
    snapshot = dict(payload)

    validate(payload, now=NOW)

    assert payload == snapshot
