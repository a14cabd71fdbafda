"""
Prometheus metrics module for the Planner backend.

Exposes service operation timings collected by @measure_operation and the
calendar view cache counters, following Prometheus naming conventions.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so tests and multiple app instances do not collide with the default one
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "planner_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "planner_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "planner_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

calendar_cache_requests_total = Counter(
    "planner_calendar_cache_requests_total",
    "Calendar view cache lookups by view type and result",
    ["view_type", "result"],  # hit | miss | expired
    registry=REGISTRY,
)

calendar_cache_evictions_total = Counter(
    "planner_calendar_cache_evictions_total",
    "Calendar view cache entries removed by capacity eviction",
    registry=REGISTRY,
)

time_block_conflicts_total = Counter(
    "planner_time_block_conflicts_total",
    "Time block writes rejected because of overlapping blocks",
    ["operation"],  # create | update
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'TimeBlockService')
            operation: Operation/method name (e.g., 'create_time_block')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_cache_lookup(view_type: str, result: str) -> None:
        calendar_cache_requests_total.labels(view_type=view_type, result=result).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_cache_evictions(count: int) -> None:
        if count > 0:
            calendar_cache_evictions_total.inc(count)
            PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_time_block_conflict(operation: str) -> None:
        time_block_conflicts_total.labels(operation=operation).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        with PrometheusMetrics._cache_lock:
            payload = PrometheusMetrics._cache_payload
            ts = PrometheusMetrics._cache_ts
            if payload is None or ts is None or (now - ts) > PrometheusMetrics._cache_ttl_seconds:
                payload = cast(bytes, generate_latest(REGISTRY))
                PrometheusMetrics._cache_payload = payload
                PrometheusMetrics._cache_ts = now
        return payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
