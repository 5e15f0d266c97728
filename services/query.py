"""Read-side operations backing the dashboard endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from app.schemas import (
    DeviceStatistics,
    DeviceSummaryOut,
    DevicesResponse,
    LatestResponse,
    RangeFilter,
    RangeResponse,
    ReadingOut,
    StatsResponse,
)
from datastore.reading_store import ReadingStore
from models.records import DeviceSummary
from services.aggregator import Aggregator

DEFAULT_LATEST_LIMIT = 10
DEFAULT_RANGE_LIMIT = 1000
DEFAULT_STATS_HOURS = 24.0


def _window_start(now: datetime, hours: float) -> Optional[datetime]:
    """Start of a look-back window; None when it reaches past ``datetime.min``."""
    try:
        return now - timedelta(hours=hours)
    except OverflowError:
        return None


class QueryEngine:
    """Shapes store lookups into API responses."""

    def __init__(
        self,
        store: ReadingStore,
        aggregator: Optional[Aggregator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.aggregator = aggregator or Aggregator()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def latest(
        self, device_id: Optional[str] = None, limit: int = DEFAULT_LATEST_LIMIT
    ) -> LatestResponse:
        readings = self.store.find_latest(device_id=device_id, limit=limit)
        data = [ReadingOut.from_reading(reading) for reading in readings]
        return LatestResponse(count=len(data), data=data)

    def range(
        self,
        device_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = DEFAULT_RANGE_LIMIT,
    ) -> RangeResponse:
        readings = self.store.find_range(device_id=device_id, start=start, end=end, limit=limit)
        data = [ReadingOut.from_reading(reading) for reading in readings]
        query = RangeFilter(device_id=device_id, start_time=start, end_time=end, limit=limit)
        return RangeResponse(count=len(data), query=query, data=data)

    def statistics(
        self, device_id: Optional[str] = None, hours: float = DEFAULT_STATS_HOURS
    ) -> StatsResponse:
        since = _window_start(self._clock(), hours)
        readings = self.store.find_range(device_id=device_id, start=since, limit=None)
        statistics: List[DeviceStatistics] = [
            DeviceStatistics(
                device_id=group.device_id,
                avg_temperature=group.avg_temperature,
                min_temperature=group.min_temperature,
                max_temperature=group.max_temperature,
                avg_humidity=group.avg_humidity,
                min_humidity=group.min_humidity,
                max_humidity=group.max_humidity,
                data_points=group.data_points,
                last_reading=group.last_reading,
                location=group.location,
            )
            for group in self.aggregator.aggregate(readings)
        ]
        return StatsResponse(time_range=f"Last {hours:g} hours", statistics=statistics)

    def devices(self) -> DevicesResponse:
        summaries: List[DeviceSummaryOut] = []
        for device_id in sorted(self.store.distinct_devices()):
            newest = self.store.find_latest(device_id=device_id, limit=1)
            if not newest:
                # Expired between the roster lookup and this read.
                continue
            summaries.append(DeviceSummaryOut.from_summary(DeviceSummary.from_reading(newest[0])))
        return DevicesResponse(count=len(summaries), devices=summaries)

