"""
Prometheus metrics for the scheduling engine.

Service timings are fed by the @measure_operation decorator; reservation,
slot-lock, notification and sweep counters are recorded by the components
that own those concerns. All metrics live on a private registry.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "slotbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "slotbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "slotbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

reservations_total = Counter(
    "slotbook_reservations_total",
    "Reservation attempts by strategy and outcome",
    ["strategy", "outcome"],
    registry=REGISTRY,
)

reservation_degraded_total = Counter(
    "slotbook_reservation_degraded_total",
    "Reservations committed without the provider/day lock",
    ["reason"],
    registry=REGISTRY,
)

slot_lock_operations_total = Counter(
    "slotbook_slot_lock_operations_total",
    "Redis slot pre-lock operations",
    ["action", "outcome"],
    registry=REGISTRY,
)

notifications_total = Counter(
    "slotbook_notifications_total",
    "Appointment notification events handed to the sink",
    ["event_type", "outcome"],
    registry=REGISTRY,
)

auto_completion_total = Counter(
    "slotbook_auto_completion_total",
    "Appointments processed by the auto-completion sweep",
    ["outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch metric objects directly."""

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
            operation: Operation/method name (e.g., 'reserve')
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
    def record_reservation(strategy: str, outcome: str) -> None:
        reservations_total.labels(strategy=strategy, outcome=outcome).inc()

    @staticmethod
    def record_degraded_reservation(reason: str) -> None:
        reservation_degraded_total.labels(reason=reason).inc()

    @staticmethod
    def record_slot_lock(action: str, outcome: str) -> None:
        slot_lock_operations_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_notification(event_type: str, outcome: str) -> None:
        notifications_total.labels(event_type=event_type, outcome=outcome).inc()

    @staticmethod
    def record_auto_completion(completed: int, failed: int) -> None:
        if completed:
            auto_completion_total.labels(outcome="completed").inc(completed)
        if failed:
            auto_completion_total.labels(outcome="failed").inc(failed)

    @staticmethod
    def get_metrics() -> bytes:
        return bytes(generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return str(CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
