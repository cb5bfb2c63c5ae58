"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total seat booking attempts',
    ['status']  # success, rejected, conflict, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Seat booking latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

ticket_cancellations = Counter(
    'ticket_cancellations_total',
    'Tickets cancelled and seats released'
)

# Inventory metrics
inventory_operations = Counter(
    'inventory_operations_total',
    'Seat counter mutations',
    ['operation', 'result']  # reserve/release, ok/overbooked/ceiling/not_found
)

# Integrity guard
delete_blocked = Counter(
    'delete_blocked_total',
    'Deletes refused because dependents still exist',
    ['kind']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Render every registered metric in the Prometheus text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, rejected, conflict, error"""
    booking_attempts.labels(status=status).inc()


def record_inventory_operation(operation: str, result: str):
    inventory_operations.labels(operation=operation, result=result).inc()


def record_delete_blocked(kind: str):
    delete_blocked.labels(kind=kind).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


# HTTP metrics, labelled by route template so ids do not explode cardinality
http_requests = Counter(
    'http_requests_total',
    'HTTP requests handled',
    ['method', 'route', 'status']
)

http_request_latency = Histogram(
    'http_request_latency_seconds',
    'HTTP request latency',
    ['method', 'route'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


def record_http_request(method: str, route: str, status_code: int, seconds: float):
    http_requests.labels(method=method, route=route, status=str(status_code)).inc()
    http_request_latency.labels(method=method, route=route).observe(seconds)
