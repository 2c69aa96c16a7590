"""Prometheus metrics for search and catalog loading."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_COUNT = Counter(
    "ports_search_queries_total",
    "Total searches by outcome",
    ["outcome"],
)

SEARCH_LATENCY = Histogram(
    "ports_search_latency_seconds",
    "Query evaluation latency",
    ["kind"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)

INDEX_LOADS = Counter(
    "ports_index_loads_total",
    "Catalog fetch attempts by status",
    ["status"],
)

CATALOG_SIZE = Gauge(
    "ports_catalog_size",
    "Ports in the loaded catalog",
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        metric = histogram.labels(**labels) if labels else histogram
        metric.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
