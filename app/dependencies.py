"""Process-scoped service wiring shared by the routes."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Request

from datastore.reading_store import ReadingStore, build_default_store
from datastore.retention import RetentionSweeper
from services.ingestion import IngestionService
from services.metrics import MetricsSink
from services.query import QueryEngine
from settings import Settings, get_settings


@dataclass
class ServiceContainer:
    """Singletons created once at startup and handed to the routes."""

    settings: Settings
    store: ReadingStore
    metrics: MetricsSink
    ingestion: IngestionService
    queries: QueryEngine
    sweeper: RetentionSweeper
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        store: Optional[ReadingStore] = None,
        metrics: Optional[MetricsSink] = None,
    ) -> "ServiceContainer":
        settings = settings or get_settings()
        if store is None:
            store = ReadingStore(
                name=settings.store_name,
                retention=timedelta(days=settings.retention_days),
                timeout=settings.store_timeout_seconds,
            )
        metrics = metrics or MetricsSink()
        return cls(
            settings=settings,
            store=store,
            metrics=metrics,
            ingestion=IngestionService(store=store, metrics=metrics),
            queries=QueryEngine(store=store),
            sweeper=RetentionSweeper(store, interval_seconds=settings.sweep_interval_seconds),
        )

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def start(self) -> None:
        self.sweeper.start()

    def shutdown(self) -> None:
        self.sweeper.stop()
        self.store.close()


@lru_cache
def build_default_container() -> ServiceContainer:
    """Factory that wires the services against the configured store."""
    return ServiceContainer.build(settings=get_settings(), store=build_default_store())


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services
