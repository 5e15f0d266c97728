from __future__ import annotations

import json
import logging
import math
import os
from bisect import bisect_left, bisect_right, insort
from collections import deque
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from itertools import count
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, Set, Tuple
from uuid import uuid4

from models.records import NormalizedReading, Reading
from services.errors import StorageUnavailable
from settings import get_settings

logger = logging.getLogger(__name__)

# (timestamp, insertion sequence, reading id); sorts by time, then arrival.
IndexKey = Tuple[datetime, int, str]
Clock = Callable[[], datetime]

DEFAULT_RETENTION = timedelta(days=30)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_document(reading: Reading) -> Dict[str, Any]:
    return {
        "id": reading.id,
        "deviceId": reading.device_id,
        "temperature": reading.temperature,
        "humidity": reading.humidity,
        "location": reading.location,
        "timestamp": reading.timestamp.isoformat(),
        "createdAt": reading.created_at.isoformat(),
    }


def _from_document(document: Dict[str, Any]) -> Reading:
    return Reading(
        id=str(document["id"]),
        device_id=str(document["deviceId"]),
        temperature=float(document["temperature"]),
        humidity=float(document["humidity"]),
        location=str(document["location"]),
        timestamp=as_utc(datetime.fromisoformat(document["timestamp"])),
        created_at=as_utc(datetime.fromisoformat(document["createdAt"])),
    )


class ReadingStore:
    """Thread-safe time-series store for sensor readings.

    Readings are kept in two sorted indexes, one global and one per device,
    both ordered by ``(timestamp, insertion sequence)``. Latest and range
    lookups binary-search those indexes instead of scanning every record.
    Records older than ``retention`` (by ``created_at``) are removed by
    ``purge_expired``, which a background sweeper calls periodically.

    When ``persistence_path`` is set every insert is appended to a JSON-lines
    file which is replayed on startup and compacted after each purge.
    """

    def __init__(
        self,
        name: str,
        persistence_path: Optional[Path] = None,
        retention: timedelta = DEFAULT_RETENTION,
        timeout: float = 5.0,
        clock: Optional[Clock] = None,
    ) -> None:
        self.name = name
        self.persistence_path = persistence_path
        self.retention = retention
        self.timeout = timeout
        self._clock = clock or _utc_now
        self._records: Dict[str, Reading] = {}
        self._time_index: List[IndexKey] = []
        self._device_index: Dict[str, List[IndexKey]] = {}
        self._expiry_queue: Deque[Tuple[datetime, str]] = deque()
        self._sequence = count()
        self._lock = Lock()
        self._open = True
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        with self._lock:
            self._open = False

    def insert(self, reading: NormalizedReading) -> str:
        """Persist a validated reading and return its assigned id."""
        created_at = as_utc(self._clock())
        record = Reading.from_normalized(
            reading, reading_id=uuid4().hex, created_at=created_at
        )
        record = replace(record, timestamp=as_utc(record.timestamp))
        with self._locked():
            self._append_to_disk(record)
            self._index(record)
        return record.id

    def find_latest(self, device_id: Optional[str] = None, limit: int = 10) -> List[Reading]:
        """Return up to ``limit`` readings, newest first."""
        return self.find_range(device_id=device_id, limit=limit)

    def find_range(
        self,
        device_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 1000,
    ) -> List[Reading]:
        """Return readings with ``start <= timestamp <= end``, newest first.

        ``limit=None`` returns every matching reading.
        """
        if limit is not None and limit <= 0:
            return []
        with self._locked():
            index = self._index_for(device_id)
            low = 0 if start is None else bisect_left(index, (as_utc(start),))
            high = len(index) if end is None else bisect_right(index, (as_utc(end), math.inf))
            if limit is not None:
                low = max(low, high - limit)
            return [self._records[index[position][2]] for position in range(high - 1, low - 1, -1)]

    def distinct_devices(self) -> Set[str]:
        with self._locked():
            return set(self._device_index)

    def count(self) -> int:
        with self._locked():
            return len(self._records)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop readings whose ``created_at`` is older than the retention window."""
        cutoff = as_utc(now or self._clock()) - self.retention
        with self._locked():
            expired: Set[str] = set()
            while self._expiry_queue and self._expiry_queue[0][0] < cutoff:
                expired.add(self._expiry_queue.popleft()[1])
            if expired:
                self._unindex(expired)
                self._rewrite_disk()
        return len(expired)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.timeout):
            raise StorageUnavailable(
                f"Timed out after {self.timeout:g}s waiting for store {self.name!r}."
            )
        try:
            if not self._open:
                raise StorageUnavailable(f"Store {self.name!r} is closed.")
            yield
        finally:
            self._lock.release()

    def _index_for(self, device_id: Optional[str]) -> List[IndexKey]:
        if device_id is None:
            return self._time_index
        return self._device_index.get(device_id, [])

    def _index(self, record: Reading) -> None:
        key: IndexKey = (record.timestamp, next(self._sequence), record.id)
        self._records[record.id] = record
        insort(self._time_index, key)
        insort(self._device_index.setdefault(record.device_id, []), key)
        self._expiry_queue.append((record.created_at, record.id))

    def _unindex(self, reading_ids: Set[str]) -> None:
        # One filtering pass per index, whatever the size of the batch.
        devices = {self._records.pop(reading_id).device_id for reading_id in reading_ids}
        self._time_index = [key for key in self._time_index if key[2] not in reading_ids]
        for device_id in devices:
            remaining = [key for key in self._device_index[device_id] if key[2] not in reading_ids]
            if remaining:
                self._device_index[device_id] = remaining
            else:
                del self._device_index[device_id]

    def _append_to_disk(self, record: Reading) -> None:
        if not self.persistence_path:
            return
        line = json.dumps(_to_document(record), sort_keys=True)
        try:
            with self.persistence_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as exc:
            raise StorageUnavailable(
                f"Could not write to {self.persistence_path}: {exc.strerror or exc}"
            ) from exc

    def _rewrite_disk(self) -> None:
        if not self.persistence_path:
            return
        temporary = self.persistence_path.with_suffix(self.persistence_path.suffix + ".tmp")
        try:
            with temporary.open("w", encoding="utf-8") as handle:
                for _, reading_id in self._expiry_queue:
                    handle.write(json.dumps(_to_document(self._records[reading_id]), sort_keys=True))
                    handle.write("\n")
            os.replace(temporary, self.persistence_path)
        except OSError as exc:
            raise StorageUnavailable(
                f"Could not compact {self.persistence_path}: {exc.strerror or exc}"
            ) from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        cutoff = as_utc(self._clock()) - self.retention
        loaded: List[Reading] = []
        with self.persistence_path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    record = _from_document(json.loads(line))
                except (ValueError, KeyError, TypeError):
                    logger.warning(
                        "Skipping unreadable line %s in %s",
                        line_number,
                        self.persistence_path,
                        extra={"reason": "corrupt_record"},
                    )
                    continue
                if record.created_at >= cutoff:
                    loaded.append(record)

        loaded.sort(key=lambda item: item.created_at)
        for record in loaded:
            self._index(record)
        logger.info(
            "Loaded %s readings from %s",
            len(loaded),
            self.persistence_path,
            extra={"remaining": len(loaded)},
        )


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> ReadingStore:
    settings = get_settings()
    store_name = settings.store_name if name is None else name
    store_path = settings.store_persistence_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return ReadingStore(
        name=store_name,
        persistence_path=persistence,
        retention=timedelta(days=settings.retention_days),
        timeout=settings.store_timeout_seconds,
    )
