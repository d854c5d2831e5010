"""
Prometheus Metrics for the VADIY chat backend.

DATA FLOW:
    This file                  presentation/api/metrics.py         Scraper
    ─────────                  ────────────────────────────         ───────
    Define metrics ──────────► /metrics endpoint ──────────────►   Prometheus ──► Grafana

METRIC TYPES:
    - Gauge: Value goes up/down (e.g. chats currently in flight)
    - Counter: Value only goes up (e.g. messages sent per tier)
    - Histogram: Distribution (for percentiles like P95, e.g. latency)
"""

from prometheus_client import (
    Gauge,
    Histogram,
    Counter,
    generate_latest,
    CONTENT_TYPE_LATEST,
)


# =============================================================================
# METRICS DEFINITIONS
# =============================================================================
ACTIVE_CHATS = Gauge(
    "vadiy_active_chats", "Number of chat requests currently being processed"
)

REQUEST_LATENCY = Histogram(
    "http_server_request_duration_seconds",
    "Http request latency in seconds",
    ["method", "route", "http_status_code"],
    buckets=[0.1, 0.5, 1, 2, 5, 10, 30, 60],
)

LLM_TOKENS_TOTAL = Histogram(
    "vadiy_llm_tokens_total",
    "Total number of LLM tokens used",
    ["type", "model"],
    buckets=[100, 500, 1000, 2000, 5000, 10000, 20000],
)

CHAT_MESSAGES_TOTAL = Counter(
    "vadiy_chat_messages_total",
    "Chat messages answered, by tier and model",
    ["tier", "model"],
)

USAGE_LIMIT_HITS_TOTAL = Counter(
    "vadiy_usage_limit_hits_total",
    "Requests rejected by a usage limit",
    ["limit_type", "tier"],
)

BLOCKED_FEATURES_TOTAL = Counter(
    "vadiy_blocked_features_total",
    "Premium features requested by tiers without access",
    ["feature"],
)

AIRTABLE_LATENCY = Histogram(
    "vadiy_airtable_request_seconds",
    "Latency of Airtable REST calls in seconds",
    ["method"],
    buckets=[0.1, 0.25, 0.5, 1, 2, 5, 10, 20],
)

SECURITY_EVENTS_TOTAL = Counter(
    "vadiy_security_events_total",
    "Audit events written, by severity",
    ["severity"],
)

ERRORS_TOTAL = Counter(
    "vadiy_errors_total",
    "Total number of errors by type",
    ["error_type"],
)


# =============================================================================
# LABEL CONSTANTS
# =============================================================================
class MetricsErrorType:
    """Error type labels for vadiy_errors_total metric."""

    LLM_FAILED = "llm_failed"
    TIMEOUT = "timeout"
    AIRTABLE_FAILED = "airtable_failed"
    CONTEXT_FAILED = "context_failed"
    USAGE_BACKEND_FAILED = "usage_backend_failed"
    INTERNAL = "internal"


class LimitType:
    RATE = "rate"
    DAILY = "daily"
    AUTH = "auth"


# =============================================================================
# RECORDING FUNCTIONS
# =============================================================================
def increment_active_chats():
    """Call when a send-message request starts."""
    ACTIVE_CHATS.inc()


def decrement_active_chats():
    """Call when a send-message request ends (in finally block)."""
    ACTIVE_CHATS.dec()


def observe_request_latency(method: str, route: str, status_code: int, duration: float):
    """Integration point: src/middleware/metrics.py"""
    REQUEST_LATENCY.labels(
        method=method, route=route, http_status_code=str(status_code)
    ).observe(duration)


def observe_llm_tokens(type: str, model: str, token_count: int):
    LLM_TOKENS_TOTAL.labels(type=type, model=model).observe(token_count)


def increment_chat_message(tier: str, model: str):
    CHAT_MESSAGES_TOTAL.labels(tier=tier, model=model).inc()


def increment_usage_limit_hit(limit_type: str, tier: str):
    USAGE_LIMIT_HITS_TOTAL.labels(limit_type=limit_type, tier=tier).inc()


def increment_blocked_feature(feature: str):
    BLOCKED_FEATURES_TOTAL.labels(feature=feature).inc()


def observe_airtable_latency(method: str, duration: float):
    AIRTABLE_LATENCY.labels(method=method).observe(duration)


def increment_security_event(severity: str):
    SECURITY_EVENTS_TOTAL.labels(severity=severity).inc()


def increment_error(error_type: str):
    """
    Call to record an error occurrence.

    Integration points:
        - services/llm_client.py: llm_failed
        - infrastructure/airtable/client.py: airtable_failed
        - infrastructure/cache/redis_usage_tracker.py: usage_backend_failed
    """
    ERRORS_TOTAL.labels(error_type=error_type).inc()


# =============================================================================
# HELPER FOR /metrics ENDPOINT
# =============================================================================
def get_metrics_content():
    """
    Generate Prometheus metrics output.

    Returns:
        Tuple of (content_bytes, content_type_string)
    """
    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = [
    "increment_active_chats",
    "decrement_active_chats",
    "observe_request_latency",
    "observe_llm_tokens",
    "increment_chat_message",
    "increment_usage_limit_hit",
    "increment_blocked_feature",
    "observe_airtable_latency",
    "increment_security_event",
    "increment_error",
    "get_metrics_content",
    "MetricsErrorType",
    "LimitType",
]
