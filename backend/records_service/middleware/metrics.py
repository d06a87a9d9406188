"""
Records Service: Prometheus Request Metrics
=============================================

What:  Request count, request duration and slow-request count per route.
How:   A RequestMetrics bundle owns its own CollectorRegistry (so every app
       instance, including test apps, starts from zero); MetricsMiddleware
       records into it; the /metrics route and the optional standalone
       listener expose it in Prometheus text format.

Exposed series:
    records_service_requests_total{method, path, status}
    records_service_request_duration_seconds{method, path}   (histogram)
    records_service_slow_requests_total{method, path}
    records_service_uptime_seconds

The `path` label is the route template (`/api/v1/records/{record_id}`), not
the raw URL, to keep label cardinality bounded. Unmatched paths are
reported as `unmatched`.
"""

import time
from typing import Sequence

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

METRIC_PREFIX = "records_service"


class RequestMetrics:
    """The metric objects of one application instance."""

    def __init__(self, buckets: Sequence[float], slow_time: float, metrics_path: str = "/metrics"):
        self.registry = CollectorRegistry()
        self.slow_time = slow_time
        self.metrics_path = metrics_path
        self._started = time.time()

        self.requests = Counter(
            f"{METRIC_PREFIX}_requests_total",
            "HTTP requests handled",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.duration = Histogram(
            f"{METRIC_PREFIX}_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "path"],
            buckets=list(buckets),
            registry=self.registry,
        )
        self.slow_requests = Counter(
            f"{METRIC_PREFIX}_slow_requests_total",
            "HTTP requests slower than the slow-time threshold",
            ["method", "path"],
            registry=self.registry,
        )
        self.uptime = Gauge(
            f"{METRIC_PREFIX}_uptime_seconds",
            "Seconds since the application started",
            registry=self.registry,
        )
        self.uptime.set_function(lambda: time.time() - self._started)

    def observe(self, method: str, path: str, status: int, duration: float) -> None:
        self.requests.labels(method=method, path=path, status=str(status)).inc()
        self.duration.labels(method=method, path=path).observe(duration)
        if duration > self.slow_time:
            self.slow_requests.labels(method=method, path=path).inc()

    def render(self) -> Response:
        return Response(generate_latest(self.registry), media_type=CONTENT_TYPE_LATEST)

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose this registry on a separate port (background thread)."""
        start_http_server(port, addr=addr, registry=self.registry)


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record every request except scrapes of the metrics endpoint itself."""

    def __init__(self, app, metrics: RequestMetrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == self.metrics.metrics_path:
            return await call_next(request)

        start_time = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            self.metrics.observe(
                method=request.method,
                path=_route_template(request),
                status=status,
                duration=time.perf_counter() - start_time,
            )
