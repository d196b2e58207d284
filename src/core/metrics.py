"""
Prometheus Metrics - Application Monitoring

Exposes metrics at /metrics endpoint for Prometheus scraping.
"""
import time

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

# === Request Metrics ===
REQUEST_COUNT = Counter(
    "fleet_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "fleet_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# === Business Metrics ===
TELEMETRY_RECEIVED = Counter(
    "fleet_telemetry_received_total",
    "Telemetry events fully ingested (history and live status)",
    ["device_class"],
)

INGEST_FAILURES = Counter(
    "fleet_ingest_failures_total",
    "Ingest calls that failed after validation",
    ["device_class", "stage"],
)

ANALYTICS_REQUESTS = Counter(
    "fleet_analytics_requests_total",
    "Performance analytics computations",
    ["outcome"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    async def dispatch(self, request: Request, call_next) -> StarletteResponse:
        if request.url.path == "/metrics":
            return await call_next(request)

        # Route template keeps label cardinality bounded (no device ids)
        method = request.method
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        REQUEST_COUNT.labels(
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(duration)

        return response


# === Metrics Router ===
router = APIRouter(tags=["Health"])


@router.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# === Helper Functions ===

def record_telemetry(device_class: str) -> None:
    """Record a fully ingested telemetry event."""
    TELEMETRY_RECEIVED.labels(device_class=device_class).inc()


def record_ingest_failure(device_class: str, stage: str) -> None:
    """Record an ingest failure at the history or projection stage."""
    INGEST_FAILURES.labels(device_class=device_class, stage=stage).inc()


def record_analytics(outcome: str) -> None:
    """Record an analytics request outcome (ok / not_found / query_failed)."""
    ANALYTICS_REQUESTS.labels(outcome=outcome).inc()
