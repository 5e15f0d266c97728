from __future__ import annotations

import logging
import threading
from typing import Optional

from datastore.reading_store import ReadingStore

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Background thread that periodically purges expired readings.

    Expiry is eventual: a reading may outlive the retention window by up to
    one ``interval_seconds``.
    """

    def __init__(self, store: ReadingStore, interval_seconds: float = 60.0) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._thread_lock = threading.Lock()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> threading.Thread:
        with self._thread_lock:
            if self._thread and self._thread.is_alive():
                return self._thread
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._loop,
                name=f"retention-sweeper-{self.store.name}",
                daemon=True,
            )
            self._thread.start()
            return self._thread

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        with self._thread_lock:
            thread = self._thread
            self._thread = None
        self._stop.set()
        if thread is not None:
            thread.join(timeout)

    def sweep_once(self) -> int:
        removed = self.store.purge_expired()
        if removed:
            logger.info(
                "Purged expired readings",
                extra={"removed": removed},
            )
        return removed

    def _loop(self) -> None:
        logger.info(
            "Retention sweeper started (interval=%ss, retention=%s)",
            self.interval_seconds,
            self.store.retention,
        )
        while not self._stop.wait(self.interval_seconds):
            try:
                self.sweep_once()
            except Exception:
                logger.exception("Retention sweep failed")
        logger.info("Retention sweeper stopped")
