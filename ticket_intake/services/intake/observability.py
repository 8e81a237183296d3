"""Prometheus metrics for ticket intake."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

CATALOG_LOADS = Counter(
    "intake_catalog_loads_total",
    "Zone and customer catalog loads",
    ["resource", "status"],  # status: success, error, stale
)

INLINE_CREATIONS = Counter(
    "intake_inline_creations_total",
    "Contacts and assets created from the intake form",
    ["entity", "status"],  # status: success, error, rejected
)

TICKET_SUBMISSIONS = Counter(
    "intake_ticket_submissions_total",
    "Ticket submissions from the intake form",
    ["status"],  # status: success, invalid, unresolved, error
)

API_LATENCY = Histogram(
    "intake_api_request_seconds",
    "Latency of field-service API calls made by the intake flow",
    ["operation"],
)
