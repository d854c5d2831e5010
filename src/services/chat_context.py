"""
Context assembly for the chat pipeline.

- Catalog context: opportunities / resources / matches the tier may see,
  rendered as compact markdown for the model
- Conversation context: recent stored messages, trimmed to the tier's
  memory window and PII-masked
"""

import logging
from datetime import datetime
from typing import Optional

from src.domain.entities.opportunity import Opportunity, Resource, UserMatches
from src.domain.ports.repositories import CatalogRepository, MessageRepository
from src.domain.value_objects.conversation_id import ConversationId
from src.domain.value_objects.search_intent import SearchIntent
from src.domain.value_objects.service_tier import UserServiceTier
from src.observability.audit import AuditLogger
from src.observability.metrics import MetricsErrorType, increment_error
from src.prompts.chat import ChatPrompts
from src.utils.pii import PIIProtector

logger = logging.getLogger(__name__)

OPPORTUNITY_SUMMARY_CHARS = 120
RESOURCE_DESCRIPTION_CHARS = 100
MAX_MATCHES_SHOWN = 5
RESOURCE_SEARCH_LIMIT = 5
MAX_HISTORY_FETCH = 20


def _short_date(value: Optional[datetime]) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def format_opportunities_context(opportunities: list[Opportunity]) -> str:
    items = []
    for index, opp in enumerate(opportunities, start=1):
        deadline = _short_date(opp.deadline) if opp.deadline else "No deadline specified"
        summary = (
            _truncate(opp.description, OPPORTUNITY_SUMMARY_CHARS)
            if opp.description
            else "No summary available"
        )
        items.append(
            f"**{index}. {opp.title}**\n"
            f"📝 **Summary:** {summary}\n"
            f"📅 **Deadline:** {deadline}\n"
            f"🔗 **Reference ID:** {opp.reference_id}"
        )
    example = opportunities[0].reference_id if opportunities else ""
    return (
        f"## 🎯 Available Opportunities in VADIY Database ({len(opportunities)} found)\n\n"
        + "\n\n".join(items)
        + "\n\n💡 **Need more details?** Ask me about any specific opportunity using "
        f'its Reference ID (e.g., "Tell me more about {example}")'
    )


def format_resources_context(resources: list[Resource]) -> str:
    items = []
    for index, resource in enumerate(resources, start=1):
        description = (
            _truncate(resource.description, RESOURCE_DESCRIPTION_CHARS)
            if resource.description
            else "No description available"
        )
        items.append(
            f"**{index}. {resource.title}**\n"
            f"📂 **Category:** {resource.category}\n"
            f"ℹ️ **Description:** {description}"
        )
    return (
        f"## 📚 Available Resources in VADIY Database ({len(resources)} found)\n\n"
        + "\n\n".join(items)
        + "\n\n💡 **Need assistance?** Contact VADIY for personalized help with these resources."
    )


def format_user_matches_context(user_matches: Optional[UserMatches]) -> str:
    if not user_matches or user_matches.total_matches == 0:
        return (
            "## 🎯 No Personalized Matches Found\n\nNo matches are currently available "
            "in your profile. Consider updating your profile for better matching."
        )
    items = []
    for index, match in enumerate(user_matches.matches[:MAX_MATCHES_SHOWN], start=1):
        score = round((match.match_score or 0) * 100)
        matched = _short_date(match.created_at) if match.created_at else "Recently"
        items.append(
            f"**{index}.** Match Score: {score}%\n"
            f"📋 **Opportunity ID:** {match.opportunity_id}\n"
            f"💡 **Why it matches:** {match.match_reason or 'Profile compatibility'}\n"
            f"⏰ **Matched:** {matched}"
        )
    return (
        f"## 🎯 Your Personalized Matches ({user_matches.total_matches} total)\n\n"
        + "\n\n".join(items)
        + "\n\n💡 *These matches are based on your profile and preferences. "
        "Ask me about any specific opportunity ID for more details!*"
    )


class ChatContextBuilder:
    def __init__(self, catalog: CatalogRepository, messages: MessageRepository):
        self._catalog = catalog
        self._messages = messages

    async def gather_tiered_context(
        self,
        message: str,
        user_id: str,
        intent: SearchIntent,
        service_tier: UserServiceTier,
    ) -> str:
        """Catalog data for the allowed parts of `intent`; a note on failure."""
        features = service_tier.features
        parts = []
        try:
            if intent.search_opportunities and features.opportunities:
                opportunities = await self._catalog.search_opportunities(message, user_id)
                AuditLogger.log_security_event(
                    user_id,
                    "data_read",
                    "opportunities:search",
                    {"dataType": "opportunities", "tier": service_tier.tier.value},
                )
                if opportunities:
                    parts.append(format_opportunities_context(opportunities))

            if intent.search_resources and features.resources:
                resources = await self._catalog.search_resources(
                    message, user_id, limit=RESOURCE_SEARCH_LIMIT
                )
                if resources:
                    parts.append(format_resources_context(resources))

            if intent.get_user_matches and features.matches:
                user_matches = await self._catalog.get_user_matches(user_id)
                if user_matches and user_matches.total_matches > 0:
                    parts.append(format_user_matches_context(user_matches))
        except Exception:
            logger.error("[ChatContext] Error gathering catalog context", exc_info=True)
            increment_error(MetricsErrorType.CONTEXT_FAILED)
            return ChatPrompts.context_error_note(service_tier.tier)

        context = "\n\n".join(parts)
        logger.debug("[ChatContext] Tiered context: %d chars", len(context))
        return context

    async def gather_tiered_conversation_context(
        self,
        conversation_id: ConversationId,
        user_id: str,
        service_tier: UserServiceTier,
    ) -> list[dict[str, str]]:
        if conversation_id.is_temporary:
            return []

        history_limit = service_tier.limits.conversation_history
        try:
            stored = await self._messages.get_for_conversation(
                conversation_id, user_id, limit=min(history_limit * 2, MAX_HISTORY_FETCH)
            )
        except Exception as e:
            logger.warning("[ChatContext] Could not fetch conversation history: %s", e)
            return []

        recent = [m for m in stored if m.role != "system"]
        recent = recent[-history_limit:] if history_limit else []
        return [
            {"role": m.role, "content": PIIProtector.mask_pii(m.content)} for m in recent
        ]
