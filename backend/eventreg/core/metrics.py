"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Reservation engine
booking_attempts = Counter(
    "booking_attempts_total",
    "Booking requests by final outcome",
    ["outcome"],  # admitted, capacity_exceeded, deadline_expired, contention, not_found, invalid_request
)

admission_latency = Histogram(
    "booking_admission_latency_seconds",
    "Time spent deciding a booking request, retries included",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

admission_retries = Counter(
    "booking_admission_retries_total",
    "Admission attempts lost to a concurrent writer on the same event",
)

booking_cancellations = Counter(
    "booking_cancellations_total",
    "Cancellation requests",
    ["result"],  # cancelled, already_cancelled
)

review_gate_decisions = Counter(
    "review_gate_decisions_total",
    "Review eligibility decisions",
    ["result"],  # admitted, not_eligible
)

# Cache
cache_operations = Counter(
    "cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_booking_attempt(outcome: str) -> None:
    booking_attempts.labels(outcome=outcome).inc()


def record_admission_retry() -> None:
    admission_retries.inc()


def record_cancellation(already_cancelled: bool) -> None:
    result = "already_cancelled" if already_cancelled else "cancelled"
    booking_cancellations.labels(result=result).inc()


def record_review_gate(admitted: bool) -> None:
    result = "admitted" if admitted else "not_eligible"
    review_gate_decisions.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool) -> None:
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
