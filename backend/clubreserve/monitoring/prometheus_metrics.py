"""
Prometheus metrics for the reservation backend.

Service timings come from the ``@measure_operation`` decorator; the
scheduling counters are incremented directly by the services that observe
the events.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "clubreserve_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "clubreserve_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "clubreserve_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

slot_conflicts_total = Counter(
    "clubreserve_slot_conflicts_total",
    "Requests rejected because the interval or weekly range was taken",
    ["source"],  # booking | series
    registry=REGISTRY,
)

series_occurrences_skipped_total = Counter(
    "clubreserve_series_occurrences_skipped_total",
    "Recurring occurrences not generated because the slot was taken or did not exist",
    registry=REGISTRY,
)

reservations_completed_total = Counter(
    "clubreserve_reservations_completed_total",
    "Reservations flipped to COMPLETED by the sweep",
    registry=REGISTRY,
)

notifications_dispatched_total = Counter(
    "clubreserve_notifications_dispatched_total",
    "Post-commit notification dispatch outcomes",
    ["status"],  # success | error
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin static facade so callers do not touch metric objects directly."""

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
            service: Service name (e.g., 'ReservationService')
            operation: Operation/method name (e.g., 'create_reservation')
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

    @staticmethod
    def inc_slot_conflict(source: str) -> None:
        slot_conflicts_total.labels(source=source).inc()

    @staticmethod
    def inc_series_skipped(count: int = 1) -> None:
        if count > 0:
            series_occurrences_skipped_total.inc(count)

    @staticmethod
    def inc_completed(count: int) -> None:
        if count > 0:
            reservations_completed_total.inc(count)

    @staticmethod
    def record_notification_outcome(status: str) -> None:
        notifications_dispatched_total.labels(status=status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
