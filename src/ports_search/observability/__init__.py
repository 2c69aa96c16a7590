"""Observability module: structured logging, Prometheus metrics and OpenTelemetry spans."""

from ports_search.observability.logging import JsonFormatter, configure_logging, current_trace_ids
from ports_search.observability.metrics import (
    CATALOG_SIZE,
    INDEX_LOADS,
    SEARCH_COUNT,
    SEARCH_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from ports_search.observability.tracing import create_span, get_tracer, init_tracing, trace_request


__all__ = [
    "CATALOG_SIZE",
    "INDEX_LOADS",
    "SEARCH_COUNT",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "current_trace_ids",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_tracing",
    "trace_request",
]
