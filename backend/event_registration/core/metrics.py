"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Capacity ledger metrics
capacity_claims = Counter(
    'capacity_claims_total',
    'Confirmed-seat claim attempts per region',
    ['region', 'result']  # claimed, rejected
)

capacity_releases = Counter(
    'capacity_releases_total',
    'Confirmed-seat releases per region',
    ['region', 'result']  # released, floor
)

# Workflow metrics
submissions = Counter(
    'registration_submissions_total',
    'Accepted registration submissions',
    ['region', 'status']  # confirmed, waiting_list
)

workflow_transitions = Counter(
    'registration_transitions_total',
    'Workflow transitions by operation and outcome',
    ['operation', 'outcome']  # ok, rejected, error
)

compensation_failures = Counter(
    'registration_compensation_failures_total',
    'Claim compensations that could not be rolled back'
)

workflow_latency = Histogram(
    'registration_workflow_latency_seconds',
    'Workflow transition latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

# HTTP metrics
request_latency = Histogram(
    'http_request_latency_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_claim(region: str, claimed: bool):
    result = "claimed" if claimed else "rejected"
    capacity_claims.labels(region=region, result=result).inc()


def record_release(region: str, released: bool):
    """Record release. A floor result means the counter was already zero."""
    result = "released" if released else "floor"
    capacity_releases.labels(region=region, result=result).inc()


def record_transition(operation: str, outcome: str):
    """Record workflow transition. Outcome: ok, rejected, error"""
    workflow_transitions.labels(operation=operation, outcome=outcome).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
