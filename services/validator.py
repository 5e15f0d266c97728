"""Pure validation of incoming sensor payloads."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from models.records import DEFAULT_LOCATION, NormalizedReading
from services.errors import InvalidValue, MissingField, OutOfRange

TEMPERATURE_RANGE = (-50.0, 100.0)
HUMIDITY_RANGE = (0.0, 100.0)


def _coerce_float(field: str, value: Any) -> float:
    # bool is an int subclass.
    if isinstance(value, bool):
        raise InvalidValue(field, value)
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError as exc:
            raise InvalidValue(field, value) from exc
    else:
        raise InvalidValue(field, value)
    if not math.isfinite(result):
        raise InvalidValue(field, value)
    return result


def _check_range(field: str, value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    if value < low:
        raise OutOfRange(field, value, bound=low, low=low, high=high)
    if value > high:
        raise OutOfRange(field, value, bound=high, low=low, high=high)
    return value


def _resolve_timestamp(value: Any, now: datetime) -> datetime:
    if value is None:
        return now
    seconds = _coerce_float("timestamp", value)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidValue("timestamp", value, "epoch seconds out of range") from exc


def validate(candidate: Any, now: Optional[datetime] = None) -> NormalizedReading:
    """Check a raw payload and return the normalized reading.

    Raises ``MissingField``, ``InvalidValue`` or ``OutOfRange``. ``now`` is the
    instant used when the device did not send a timestamp.
    """
    if not isinstance(candidate, Mapping):
        raise InvalidValue("body", type(candidate).__name__, "expected a JSON object")

    device_id = candidate.get("deviceId")
    if device_id is None:
        raise MissingField("deviceId")
    if not isinstance(device_id, str):
        raise InvalidValue("deviceId", device_id, "expected a string")
    device_id = device_id.strip()
    if not device_id:
        raise MissingField("deviceId")

    raw_temperature = candidate.get("temperature")
    if raw_temperature is None:
        raise MissingField("temperature")
    raw_humidity = candidate.get("humidity")
    if raw_humidity is None:
        raise MissingField("humidity")

    temperature = _check_range(
        "temperature", _coerce_float("temperature", raw_temperature), TEMPERATURE_RANGE
    )
    humidity = _check_range("humidity", _coerce_float("humidity", raw_humidity), HUMIDITY_RANGE)

    location = candidate.get("location")
    location = str(location).strip() if location is not None else ""

    resolved_now = now if now is not None else datetime.now(timezone.utc)
    timestamp = _resolve_timestamp(candidate.get("timestamp"), resolved_now)

    return NormalizedReading(
        device_id=device_id,
        temperature=temperature,
        humidity=humidity,
        location=location or DEFAULT_LOCATION,
        timestamp=timestamp,
    )
