"""
Prometheus metrics for the notebook service.

Tracks HTTP traffic, entity operations and permission denials.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "eln_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "eln_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0)
)

# Entity metrics
entity_operations_total = Counter(
    "eln_entity_operations_total",
    "Total entity operations",
    ["entity_type", "operation", "status"]
)

entity_show_rows = Histogram(
    "eln_entity_show_rows",
    "Rows returned by listing queries",
    ["entity_type"],
    buckets=(0, 1, 5, 10, 15, 25, 50, 100, 250, 500)
)

permission_denied_total = Counter(
    "eln_permission_denied_total",
    "Entity accesses refused by the permission resolver",
    ["entity_type", "rw"]
)

# Team administration metrics
admin_operations_total = Counter(
    "eln_admin_operations_total",
    "Team administration operations",
    ["resource", "operation"]
)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_entity_operation(entity_type: str, operation: str, success: bool = True):
    """Track create/update/lock/destroy operations on entities."""
    status = "success" if success else "failure"
    entity_operations_total.labels(
        entity_type=entity_type, operation=operation, status=status
    ).inc()


def track_show_rows(entity_type: str, count: int):
    """Track the size of listing results."""
    entity_show_rows.labels(entity_type=entity_type).observe(count)


def track_permission_denied(entity_type: str, rw: str):
    """Track refused reads and writes."""
    permission_denied_total.labels(entity_type=entity_type, rw=rw).inc()


def track_admin_operation(resource: str, operation: str):
    """Track team administration changes."""
    admin_operations_total.labels(resource=resource, operation=operation).inc()


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
