"""Prometheus metric definitions for the broker."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Calls made to external collaborators by outcome",
    ["service", "dependency", "outcome"],
)
upstream_latency_seconds = Histogram(
    "upstream_latency_seconds",
    "External collaborator call latency seconds",
    ["service", "dependency"],
)
error_responses_total = Counter(
    "error_responses_total",
    "Normalized error envelopes sent, by taxonomy code",
    ["service", "code"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
