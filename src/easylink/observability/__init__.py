"""Observability module for structured logging, tracing and metrics."""

from easylink.observability.context import get_trace_context, set_trace_context, trace_context
from easylink.observability.logging import JsonFormatter, configure_logging
from easylink.observability.metrics import (
    ANCHOR_WRITES,
    CORPUS_READ_FAILURES,
    SEARCH_LATENCY,
    SEARCH_OUTCOMES,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from easylink.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "ANCHOR_WRITES",
    "CORPUS_READ_FAILURES",
    "SEARCH_LATENCY",
    "SEARCH_OUTCOMES",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
