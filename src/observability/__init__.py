"""Observability package: Prometheus metrics and the audit trail."""

from src.observability.metrics import (
    increment_active_chats,
    decrement_active_chats,
    observe_request_latency,
    observe_llm_tokens,
    increment_chat_message,
    increment_usage_limit_hit,
    increment_blocked_feature,
    observe_airtable_latency,
    increment_security_event,
    increment_error,
    get_metrics_content,
    MetricsErrorType,
    LimitType,
)

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
