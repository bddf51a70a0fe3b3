"""Prometheus metrics for HTTP traffic and the reconciliation pipeline.

Provides:
- MetricsMiddleware: ASGI middleware for HTTP request metrics
- archive_entries_total / reconciliation_leads_total / crm_requests_total: pipeline outcome counters
- pipeline_duration_seconds / archive_upload_bytes: pipeline timing and upload size
- get_metrics_response(): Prometheus exposition for the /metrics route
"""

from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── HTTP Metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ── Pipeline Metrics ─────────────────────────────────────────────────────────

archive_entries_total = Counter(
    "archive_entries_total",
    "XML archive entries seen, by outcome",
    ["outcome"],  # extracted, passthrough, decode_error, parse_error
)

reconciliation_leads_total = Counter(
    "reconciliation_leads_total",
    "CRM leads reconciled, by outcome",
    ["outcome"],  # no_identifier, unmatched, unchanged, changed
)

crm_requests_total = Counter(
    "crm_requests_total",
    "CRM API page requests",
    ["status"],  # success, error
)

pipeline_duration_seconds = Histogram(
    "pipeline_duration_seconds",
    "Archive pipeline stage duration in seconds",
    ["stage"],  # extract, fetch_leads, reconcile
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

archive_upload_bytes = Histogram(
    "archive_upload_bytes",
    "Size of uploaded archives in bytes",
    buckets=(1e4, 1e5, 1e6, 5e6, 1e7, 5e7, 1e8),
)


# ── Metrics Middleware ───────────────────────────────────────────────────────


def _endpoint_label(request: Request) -> str:
    """Route template for the request, so label cardinality stays bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record request count and latency per method, route and status.

    Requests for /metrics itself are not recorded.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        endpoint = _endpoint_label(request)
        http_requests_total.labels(request.method, endpoint, str(response.status_code)).inc()
        http_request_duration_seconds.labels(request.method, endpoint).observe(elapsed)
        return response


def get_metrics_response() -> Response:
    """Render the default registry in Prometheus text format."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
