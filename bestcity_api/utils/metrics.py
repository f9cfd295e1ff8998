"""Prometheus metrics: HTTP traffic, note operations, database health."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import (
    CollectorRegistry,
    Counter,
    GCCollector,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

logger = logging.getLogger(__name__)


class NotesMetrics:
    """All metrics of one application instance, on a private registry.

    Default runtime collectors (process, platform, GC) are registered next
    to the custom metrics so a single scrape returns everything.
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        prefix: str = "bestcity",
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.prefix = prefix

        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)

        # HTTP metrics (populated by MetricsMiddleware)
        self.http_request_duration = Histogram(
            f"{prefix}_http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "route", "status_code"],
            buckets=(0.1, 0.3, 0.5, 0.7, 1, 3, 5, 7, 10),
            registry=self.registry,
        )
        self.http_requests_total = Counter(
            f"{prefix}_http_requests",
            "Total number of HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry,
        )
        self.active_connections = Gauge(
            f"{prefix}_active_connections",
            "Number of active connections",
            registry=self.registry,
        )

        # Database
        self.db_connection_status = Gauge(
            f"{prefix}_db_connection_status",
            "Database connection status (1 = connected, 0 = disconnected)",
            registry=self.registry,
        )
        self.db_query_duration = Histogram(
            f"{prefix}_db_query_duration_seconds",
            "Duration of database queries in seconds",
            ["operation", "collection"],
            buckets=(0.01, 0.05, 0.1, 0.3, 0.5, 1, 2, 5),
            registry=self.registry,
        )

        # Notes
        self.notes_created = Counter(
            f"{prefix}_notes_created",
            "Total number of notes created",
            registry=self.registry,
        )
        self.notes_retrieved = Counter(
            f"{prefix}_notes_retrieved",
            "Total number of notes retrieved",
            registry=self.registry,
        )
        self.notes_updated = Counter(
            f"{prefix}_notes_updated",
            "Total number of notes updated",
            registry=self.registry,
        )
        self.notes_deleted = Counter(
            f"{prefix}_notes_deleted",
            "Total number of notes deleted",
            registry=self.registry,
        )

        # Errors
        self.errors_total = Counter(
            f"{prefix}_errors",
            "Total number of errors",
            ["type", "route"],  # validation, not_found, store
            registry=self.registry,
        )

    def set_db_connection_status(self, connected: bool) -> None:
        self.db_connection_status.set(1 if connected else 0)
        logger.info("Database connection status updated", extra={"connected": connected})

    def observe_request(
        self, method: str, route: str, status_code: int, duration: float
    ) -> None:
        labels = {"method": method, "route": route, "status_code": str(status_code)}
        self.http_request_duration.labels(**labels).observe(duration)
        self.http_requests_total.labels(**labels).inc()

    @contextmanager
    def query_timer(self, operation: str, collection: str = "notes") -> Iterator[None]:
        """Time one store round-trip, whether it succeeds or raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.db_query_duration.labels(
                operation=operation, collection=collection
            ).observe(time.perf_counter() - start)

    def render(self) -> bytes:
        return generate_latest(self.registry)
