"""
Prometheus metrics for the message board.

This module provides:
- HTTP request counter (method, path, status)
- Submission outcome counter (result)
- Request latency histogram (method, path)
- Live WebSocket subscriber gauge

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

# HTTP request counter with labels for method, path, and status code
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# Submission outcome counter
# result: accepted, rate_limited, content_rejected, invalid_data, server_error
message_submissions_total = Counter(
    "message_submissions_total",
    "Total message submission outcomes",
    labelnames=["result"]
)

# Request latency histogram in seconds
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)

websocket_subscribers = Gauge(
    "websocket_subscribers",
    "Currently connected real-time subscribers"
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    # Normalize path to avoid high-cardinality labels
    normalized_path = path.split("?")[0]

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_submission_outcome(result: str) -> None:
    """
    Record a message submission outcome.

    Args:
        result: "accepted" or the error category of the rejection
    """
    message_submissions_total.labels(result=result).inc()


def set_subscriber_count(count: int) -> None:
    """Publish the number of live WebSocket subscribers."""
    websocket_subscribers.set(count)


def get_metrics() -> bytes:
    """
    Generate Prometheus exposition format metrics.

    Returns:
        Metrics in Prometheus text format as bytes
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    """Content type for the Prometheus text exposition format."""
    return CONTENT_TYPE_LATEST
