"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, conflict, error
)

booking_cancellations = Counter(
    'booking_cancellations_total',
    'Bookings cancelled',
    ['reason']  # customer, admin_reset
)

# Seat inventory metrics
seat_transitions = Counter(
    'seat_transitions_total',
    'Seat status transition requests',
    ['target', 'result']  # result: applied, conflict, invalid
)

seat_transition_latency = Histogram(
    'seat_transition_latency_seconds',
    'Time spent inside the inventory critical section',
    buckets=[0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01]
)

# Hold metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Seat hold requests',
    ['result']  # held, conflict, released, consumed
)

# Block selection metrics
block_previews = Counter(
    'block_previews_total',
    'Adjacent seat block previews',
    ['result']  # found, empty
)

# Access control
rate_limit_rejections = Counter(
    'rate_limit_rejections_total',
    'Requests rejected by the per-key rate limiter'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, conflict, error"""
    booking_attempts.labels(status=status).inc()


def record_transition(target: str, result: str):
    seat_transitions.labels(target=target, result=result).inc()


def record_reservation(result: str):
    reservation_attempts.labels(result=result).inc()


def record_block_preview(found: bool):
    block_previews.labels(result="found" if found else "empty").inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
