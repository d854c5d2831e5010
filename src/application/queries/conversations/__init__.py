"""Conversation-related queries."""

from src.application.queries.conversations.list_conversations import (
    ListConversationsQuery,
    ListConversationsHandler,
)

__all__ = [
    "ListConversationsQuery",
    "ListConversationsHandler",
]
