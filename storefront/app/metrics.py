from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "lbinag_requests_total",
    "Total HTTP requests processed by the storefront",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "lbinag_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "lbinag_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

AUTH_EVENTS = Counter(
    "lbinag_auth_events_total",
    "Magic-link authentication events",
    ("event", "outcome"),
)

CHAT_REPLIES = Counter(
    "lbinag_chat_replies_total",
    "Chat replies generated",
    ("source",),
)

CATALOG_SEARCHES = Counter(
    "lbinag_catalog_searches_total",
    "Catalog searches executed",
    ("filtered",),
)

__all__ = [
    "AUTH_EVENTS",
    "CATALOG_SEARCHES",
    "CHAT_REPLIES",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
]
