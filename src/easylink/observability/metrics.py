"""Prometheus metrics bridged to OpenTelemetry instruments."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


_meter_holder: dict[str, Any] = {"meter": None, "provider": None}


def init_metrics(
    service_name: str = "easylink",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: list[MetricReader] | None = None,
) -> MeterProvider:
    """Initialize OpenTelemetry metrics."""
    provider = _meter_holder.get("provider")
    if isinstance(provider, MeterProvider):
        return provider

    attributes = {"service.name": service_name}
    if resource_attributes:
        attributes.update(resource_attributes)
    resource = Resource.create(attributes)
    provider = MeterProvider(resource=resource, metric_readers=metric_readers or [])
    otel_metrics.set_meter_provider(provider)
    _meter_holder["provider"] = provider
    _meter_holder["meter"] = provider.get_meter(__name__)
    return provider


def _get_meter():
    meter = _meter_holder.get("meter")
    if meter is None:
        meter = otel_metrics.get_meter(__name__)
        _meter_holder["meter"] = meter
    return meter


class _BoundMetric:
    def __init__(self, wrapper: MetricBridge, labels: dict[str, str]) -> None:
        self._wrapper = wrapper
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._wrapper.inc(self._labels, amount)

    def observe(self, value: float) -> None:
        self._wrapper.observe(self._labels, value)


class MetricBridge:
    """Bridge Prometheus metrics to OTel instruments."""

    def __init__(
        self,
        prom_metric: Counter | Histogram,
        *,
        otel_name: str,
        otel_description: str,
        otel_kind: str,
    ) -> None:
        self._prom_metric = prom_metric
        self._otel_name = otel_name
        self._otel_description = otel_description
        self._otel_kind = otel_kind
        self._otel_instrument = None

    def labels(self, **labels: str) -> _BoundMetric:
        return _BoundMetric(self, labels)

    def _ensure_otel_instrument(self):
        if self._otel_instrument is not None:
            return self._otel_instrument
        meter = _get_meter()
        if self._otel_kind == "counter":
            self._otel_instrument = meter.create_counter(self._otel_name, description=self._otel_description)
        elif self._otel_kind == "histogram":
            self._otel_instrument = meter.create_histogram(self._otel_name, description=self._otel_description)
        else:
            raise ValueError(f"Unknown metric kind: {self._otel_kind}")
        return self._otel_instrument

    def inc(self, labels: dict[str, str], amount: float) -> None:
        self._prom_metric.labels(**labels).inc(amount)
        self._ensure_otel_instrument().add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        self._prom_metric.labels(**labels).observe(value)
        self._ensure_otel_instrument().record(value, labels)


_SEARCH_LATENCY_PROM = Histogram(
    "easylink_search_latency_seconds",
    "Similarity search latency",
    ["outcome"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

_SEARCH_OUTCOMES_PROM = Counter(
    "easylink_search_outcomes_total",
    "Similarity searches by outcome",
    ["outcome"],
)

_ANCHOR_WRITES_PROM = Counter(
    "easylink_anchor_writes_total",
    "Block anchor resolutions that touched a document",
    ["result"],
)

_CORPUS_READ_FAILURES_PROM = Counter(
    "easylink_corpus_read_failures_total",
    "Documents skipped because their content or metadata could not be read",
    ["stage"],
)

SEARCH_LATENCY = MetricBridge(
    _SEARCH_LATENCY_PROM,
    otel_name="easylink_search_latency_seconds",
    otel_description="Similarity search latency",
    otel_kind="histogram",
)

SEARCH_OUTCOMES = MetricBridge(
    _SEARCH_OUTCOMES_PROM,
    otel_name="easylink_search_outcomes_total",
    otel_description="Similarity searches by outcome",
    otel_kind="counter",
)

ANCHOR_WRITES = MetricBridge(
    _ANCHOR_WRITES_PROM,
    otel_name="easylink_anchor_writes_total",
    otel_description="Block anchor resolutions that touched a document",
    otel_kind="counter",
)

CORPUS_READ_FAILURES = MetricBridge(
    _CORPUS_READ_FAILURES_PROM,
    otel_name="easylink_corpus_read_failures_total",
    otel_description="Documents skipped because their content or metadata could not be read",
    otel_kind="counter",
)


@contextmanager
def track_latency(histogram: MetricBridge, labels: dict[str, str]) -> Generator[None, None, None]:
    """Observe the elapsed time of the block; ``labels`` may be updated inside it."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics exposition."""
    return CONTENT_TYPE_LATEST
