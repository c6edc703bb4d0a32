"""Prometheus metric definitions for the mock engine and HTTP binding."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


charges_created_total = Counter("mock_charges_created_total", "Total charges created", ["service", "captured"])
charge_captures_total = Counter("mock_charge_captures_total", "Total uncaptured charges captured", ["service", "partial"])
customers_created_total = Counter("mock_customers_created_total", "Total customers created", ["service"])
tokens_created_total = Counter("mock_tokens_created_total", "Total source tokens generated", ["service"])
invalid_requests_total = Counter(
    "mock_invalid_requests_total",
    "Requests rejected with an invalid request error",
    ["service", "param", "status_code"],
)
http_requests_total = Counter(
    "mock_http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "mock_http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
