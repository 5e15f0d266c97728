"""Exception taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for errors raised by the sensor data services."""


class ValidationError(ServiceError):
    """Client supplied data that cannot be accepted."""


class MissingField(ValidationError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing required field: {field}")


class InvalidValue(ValidationError):
    def __init__(self, field: str, value: Any, reason: str = "must be a finite number") -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field}: {value!r} ({reason})")


class OutOfRange(ValidationError):
    def __init__(self, field: str, value: float, bound: float, low: float, high: float) -> None:
        self.field = field
        self.value = value
        self.bound = bound
        self.low = low
        self.high = high
        super().__init__(
            f"{field.capitalize()} out of valid range ({low:g} to {high:g}): got {value:g}"
        )


class InvalidQuery(ValidationError):
    def __init__(self, parameter: str, value: Any, reason: str) -> None:
        self.parameter = parameter
        self.value = value
        super().__init__(f"Invalid query parameter {parameter}={value!r}: {reason}")


class StorageUnavailable(ServiceError):
    """The reading store could not be reached or written."""
