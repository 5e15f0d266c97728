"""Write path: validate, persist, record metrics, acknowledge."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from app.schemas import IngestResponse
from datastore.reading_store import ReadingStore
from services.errors import StorageUnavailable, ValidationError
from services.metrics import MetricsSink
from services.validator import validate

logger = logging.getLogger(__name__)


class IngestionService:
    """Handles one incoming reading per call.

    A rejected payload is never persisted and never reaches the metrics sink.
    Storage failures propagate to the caller unchanged; retrying is up to the
    device, and a retried payload becomes a second, distinct reading.
    """

    def __init__(
        self,
        store: ReadingStore,
        metrics: MetricsSink,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.metrics = metrics
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def ingest(self, payload: Any) -> IngestResponse:
        try:
            reading = validate(payload, now=self._clock())
        except ValidationError as exc:
            logger.warning(
                "Rejected sensor reading: %s",
                exc,
                extra={"reason": type(exc).__name__, "field": getattr(exc, "field", None)},
            )
            raise

        try:
            reading_id = self.store.insert(reading)
        except StorageUnavailable:
            logger.error(
                "Failed to persist sensor reading",
                extra={"device_id": reading.device_id, "reason": "storage_unavailable"},
            )
            raise

        self.metrics.record(reading)
        logger.info(
            "Data received from %s: %.2f°C, %.1f%%",
            reading.device_id,
            reading.temperature,
            reading.humidity,
            extra={
                "device_id": reading.device_id,
                "reading_id": reading_id,
                "location": reading.location,
            },
        )
        return IngestResponse(id=reading_id, timestamp=reading.timestamp)

