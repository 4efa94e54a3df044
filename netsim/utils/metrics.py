from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


HTTP_REQUESTS_TOTAL = Counter(
    "netsim_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "netsim_http_request_duration_seconds",
    "HTTP request duration (seconds)",
    ["method", "path"],
)

PACKETS_TOTAL = Counter(
    "netsim_packets_total",
    "Packet status transitions",
    ["protocol", "status"],
)

EVENTS_PUBLISHED_TOTAL = Counter(
    "netsim_events_published_total",
    "Events published on the simulator event bus",
    ["event"],
)

EVENT_DELIVERY_FAILURES_TOTAL = Counter(
    "netsim_event_delivery_failures_total",
    "Event deliveries that failed or were dropped",
    ["event", "reason"],
)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
