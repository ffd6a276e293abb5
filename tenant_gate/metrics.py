"""
Prometheus metrics for the identity pipeline

Metrics Categories:
- Pipeline: outcome per request, end-to-end duration
- Resolution: which tenant strategy answered
- Authorization: access denials per matched route prefix
- Directory: backing store failures
"""
from typing import Optional
from prometheus_client import (
    Counter, Histogram,
    CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
)

# Create custom registry (allows multiple instances for testing)
registry = CollectorRegistry()

# ============================================================
# Pipeline Metrics
# ============================================================

pipeline_requests_total = Counter(
    'pipeline_requests_total',
    'Requests processed by the identity pipeline',
    ['outcome'],  # passed, redirect, error
    registry=registry
)

request_duration_seconds = Histogram(
    'request_duration_seconds',
    'Request duration from pipeline entry to response (includes handler)',
    ['outcome'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=registry
)

# ============================================================
# Resolution & Authorization Metrics
# ============================================================

tenant_resolutions_total = Counter(
    'tenant_resolutions_total',
    'Tenant resolution results by answering strategy',
    ['strategy'],  # user_membership, subdomain, custom_domain, token_claim, header, none
    registry=registry
)

access_denied_total = Counter(
    'access_denied_total',
    'Page authorization denials',
    ['route_prefix'],
    registry=registry
)

directory_errors_total = Counter(
    'directory_errors_total',
    'Directory lookups that failed against the backing store',
    ['operation'],
    registry=registry
)

# ============================================================
# Helper Functions
# ============================================================

def track_request(outcome: str, duration: Optional[float] = None):
    """Track a request leaving the pipeline"""
    pipeline_requests_total.labels(outcome=outcome).inc()
    if duration is not None:
        request_duration_seconds.labels(outcome=outcome).observe(duration)


def track_tenant_resolution(strategy: Optional[str]):
    """Track which strategy resolved the tenant (None: unresolved)"""
    tenant_resolutions_total.labels(strategy=strategy or "none").inc()


def track_access_denied(route_prefix: str):
    """Track page authorization denial"""
    access_denied_total.labels(route_prefix=route_prefix).inc()


def track_directory_error(operation: Optional[str]):
    """Track backing store failure"""
    directory_errors_total.labels(operation=operation or "unknown").inc()


def get_metrics_text() -> bytes:
    """Get metrics in Prometheus text format"""
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    """Get Prometheus content type"""
    return CONTENT_TYPE_LATEST
