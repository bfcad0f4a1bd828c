"""Prometheus metrics for SiteDesk.

Counters and histograms for event handling, flow progress, uploads,
delegation and session store health.
"""

from prometheus_client import Counter, Histogram

EVENTS_PROCESSED = Counter(
    "sitedesk_events_processed_total",
    "Total number of inbound events processed",
    labelnames=["role", "outcome"],
)

EVENT_LATENCY = Histogram(
    "sitedesk_event_latency_seconds",
    "Time spent handling one inbound event",
    labelnames=["role"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

FLOW_STARTS = Counter(
    "sitedesk_flow_starts_total",
    "Number of flows started",
    labelnames=["intent"],
)

FLOW_COMPLETIONS = Counter(
    "sitedesk_flow_completions_total",
    "Number of flows that reached completion",
    labelnames=["intent", "outcome"],
)

VALIDATION_FAILURES = Counter(
    "sitedesk_validation_failures_total",
    "Number of rejected step inputs",
    labelnames=["intent", "step"],
)

UPLOAD_ATTEMPTS = Counter(
    "sitedesk_upload_attempts_total",
    "Attachment upload attempts by outcome",
    labelnames=["outcome"],
)

UPLOAD_LATENCY = Histogram(
    "sitedesk_upload_latency_seconds",
    "Attachment upload latency in seconds",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

DELEGATION_TRANSITIONS = Counter(
    "sitedesk_delegation_transitions_total",
    "Delegation state transitions",
    labelnames=["transition", "acting_as"],
)

CORRUPTED_SESSIONS = Counter(
    "sitedesk_corrupted_sessions_total",
    "Sessions reset because their state was inconsistent",
    labelnames=["scope"],
)

SESSION_STORE_FALLBACKS = Counter(
    "sitedesk_session_store_fallbacks_total",
    "Session store failures absorbed by the engine",
    labelnames=["operation"],
)
