"""
SendMessage Command - Run one chat turn through the tiered pipeline.

Handler steps:
1. Resolve the service tier (cached, else profile lookup)
2. Per-minute rate limit, then the daily message quota
3. Sanitize and screen the message
4. Detect search intent and strip what the tier cannot use
5. Gather catalog context and conversation history
6. Build the tiered prompt and call the tier's model
7. Record usage, store both messages, track analytics

Session verification happens in the router before the command is built.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from src.application.common.errors import ApiError
from src.application.common.interfaces import Command, CommandHandler
from src.config.settings import Config
from src.domain.ports.repositories import (
    AnalyticsRepository,
    ConversationRepository,
    MessageRepository,
)
from src.domain.ports.usage_tracker import UsageTracker
from src.domain.value_objects.conversation_id import ConversationId
from src.domain.value_objects.search_intent import SearchIntent
from src.domain.value_objects.service_tier import SubscriptionTier, UserServiceTier
from src.domain.value_objects.usage import DailyLimitStatus, RateLimitStatus
from src.observability.audit import AuditLogger, client_ip
from src.observability.metrics import (
    LimitType,
    decrement_active_chats,
    increment_active_chats,
    increment_blocked_feature,
    increment_chat_message,
    increment_usage_limit_hit,
)
from src.prompts.chat import ChatPrompts
from src.services.chat_context import ChatContextBuilder
from src.services.intent_detection import apply_tier_restrictions, detect_search_intent
from src.services.llm_client import chat_completion, get_content, get_finish_reason, get_usage
from src.services.subscription_service import get_feature_upsell_message
from src.services.tier_resolver import TierResolver
from src.utils.pii import PIIProtector
from src.utils.safety import InputValidator
from src.utils.security import SecurityManager

logger = logging.getLogger(__name__)

RESOURCE = "chat/send-message"
FREE_TEMPERATURE = 0.5
PAID_TEMPERATURE = 0.7


def parse_conversation_id(raw: Optional[str]) -> ConversationId:
    """Client-supplied id; blank means a fresh temporary conversation."""
    if raw is None or not raw.strip():
        return ConversationId.temporary(SecurityManager.generate_token(8))
    try:
        return ConversationId(raw.strip())
    except ValueError as e:
        raise ApiError(400, "INVALID_CONVERSATION_ID", str(e)) from e


def rate_limit_headers(status: RateLimitStatus) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(status.limit),
        "X-RateLimit-Remaining": str(status.remaining),
        "X-RateLimit-Reset": str(int(status.resets_at.timestamp())),
    }


@dataclass
class ModelReply:
    content: str
    model: str
    success: bool
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def prompt_tokens(self) -> int:
        return self.metadata.get("promptTokens", 0)

    @property
    def completion_tokens(self) -> int:
        return self.metadata.get("completionTokens", 0)

    @property
    def tokens_used(self) -> int:
        return self.metadata.get("tokensUsed", 0)


@dataclass
class SendMessageResult:
    messages: list[dict[str, Any]]
    conversation_id: ConversationId
    reply: ModelReply
    tier: SubscriptionTier
    daily: DailyLimitStatus
    rate: RateLimitStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "messages": self.messages,
            "conversationId": self.conversation_id.value,
            "aiModel": self.reply.model,
            "usage": {
                "messagesRemaining": self.daily.remaining_after_send,
                "messagesLimit": self.daily.limit,
                "tokensUsed": self.reply.tokens_used,
                "tier": self.tier.value,
            },
            "rateLimit": {
                "remaining": self.rate.remaining,
                "limit": self.rate.limit,
                "resetsAt": self.rate.resets_at.isoformat(),
            },
        }

    @property
    def headers(self) -> dict[str, str]:
        return rate_limit_headers(self.rate)


@dataclass(frozen=True)
class SendMessageCommand(Command[SendMessageResult]):
    user_id: str
    message: str
    session_id: str = ""
    conversation_id: Optional[str] = None
    attachments: tuple = ()
    # starlette Request, used for audit IP / user agent only
    request: Any = None


class SendMessageHandler(CommandHandler[SendMessageResult]):
    def __init__(
        self,
        tiers: TierResolver,
        usage: UsageTracker,
        conversations: ConversationRepository,
        messages: MessageRepository,
        analytics: AnalyticsRepository,
        context_builder: ChatContextBuilder,
        openai_client,
    ):
        self.tiers = tiers
        self.usage = usage
        self.conversations = conversations
        self.messages = messages
        self.analytics = analytics
        self.context_builder = context_builder
        self.openai_client = openai_client

    async def execute(self, command: SendMessageCommand) -> SendMessageResult:
        start = time.monotonic()
        conversation_id = command.conversation_id or "temp"
        tier = SubscriptionTier.FREE
        increment_active_chats()
        try:
            service_tier = await self.tiers.resolve(command.user_id)
            tier = service_tier.tier
            logger.info(
                "[SendMessage] User %s tier=%s model=%s",
                command.user_id,
                tier.value,
                service_tier.model_to_use,
            )
            return await self._run(command, service_tier, start)
        except ApiError:
            raise
        except Exception as e:
            logger.error("[SendMessage] Chat pipeline failed", exc_info=True)
            AuditLogger.log_security_event(
                command.user_id,
                "chat_api_error",
                RESOURCE,
                {"error": str(e), "conversationId": conversation_id, "tier": tier.value},
                "high",
                command.request,
            )
            raise ApiError(
                500,
                "INTERNAL_ERROR",
                "An internal error occurred while processing your message",
                details=str(e) if Config.APP_ENV == "development" else None,
            ) from e
        finally:
            decrement_active_chats()

    async def _run(
        self, command: SendMessageCommand, service_tier: UserServiceTier, start: float
    ) -> SendMessageResult:
        user_id = command.user_id
        tier = service_tier.tier
        conversation_id = parse_conversation_id(command.conversation_id)

        rate = await self.usage.check_rate_limit(user_id, tier)
        if not rate.allowed:
            logger.warning("[SendMessage] Rate limit exceeded for %s user %s", tier.value, user_id)
            increment_usage_limit_hit(LimitType.RATE, tier.value)
            headers = rate_limit_headers(rate)
            retry_after = max(1, int((rate.resets_at - datetime.now(timezone.utc)).total_seconds()))
            headers["Retry-After"] = str(retry_after)
            raise ApiError(
                429,
                "RATE_LIMIT_EXCEEDED",
                "Too many requests. Please slow down and try again shortly.",
                details={
                    "limit": rate.limit,
                    "current": rate.current,
                    "resetsAt": rate.resets_at.isoformat(),
                    "tier": tier.value,
                },
                headers=headers,
            )

        daily = await self.usage.check_daily_message_limit(user_id, tier)
        if not daily.allowed:
            logger.warning(
                "[SendMessage] Daily limit exceeded for %s user %s (%d/%d)",
                tier.value,
                user_id,
                daily.current,
                daily.limit,
            )
            increment_usage_limit_hit(LimitType.DAILY, tier.value)
            message = "You've reached your daily message limit."
            if tier == SubscriptionTier.FREE:
                message += " Upgrade to Premium for 500 daily messages and enhanced AI features!"
            raise ApiError(
                429,
                "DAILY_LIMIT_EXCEEDED",
                message,
                details={
                    "current": daily.current,
                    "limit": daily.limit,
                    "resetsAt": daily.resets_at.isoformat(),
                    "tier": tier.value,
                    "upgradeUrl": Config.UPGRADE_URL if tier == SubscriptionTier.FREE else None,
                },
            )

        sanitized = InputValidator.sanitize_input(command.message)
        if not sanitized:
            raise ApiError(400, "EMPTY_MESSAGE", "Message cannot be empty")

        if InputValidator.contains_malicious_content(sanitized):
            AuditLogger.log_security_event(
                user_id,
                "malicious_content_detected",
                RESOURCE,
                {"message": PIIProtector.mask_pii(sanitized)},
                "high",
                command.request,
            )
            raise ApiError(
                400, "MALICIOUS_CONTENT", "Message contains potentially harmful content"
            )

        pii = PIIProtector.detect_pii(sanitized)
        if pii:
            logger.warning("[SendMessage] PII detected in message")
            AuditLogger.log_security_event(
                user_id,
                "pii_detected_in_message",
                RESOURCE,
                {
                    "piiTypes": [match["type"] for match in pii],
                    "messageLength": len(sanitized),
                },
                "medium",
                command.request,
            )

        reply = await self._generate_reply(sanitized, user_id, conversation_id, service_tier)

        await self.usage.increment_message_count(user_id, tier)
        await self.usage.track_token_usage(
            user_id, tier, reply.prompt_tokens, reply.completion_tokens, reply.model
        )
        increment_chat_message(tier.value, reply.model)

        conversation_id = await self._store_messages(conversation_id, user_id, sanitized, reply)

        now = datetime.now(timezone.utc).isoformat()
        response_messages = [
            {
                "id": SecurityManager.generate_token(8),
                "conversationId": conversation_id.value,
                "role": "user",
                "content": sanitized,
                "metadata": {"piiDetected": bool(pii), "tier": tier.value},
                "attachments": list(command.attachments),
                "timestamp": now,
                "edited": False,
            },
            {
                "id": SecurityManager.generate_token(8),
                "conversationId": conversation_id.value,
                "role": "assistant",
                "content": reply.content,
                "metadata": reply.metadata,
                "attachments": [],
                "timestamp": now,
                "edited": False,
            },
        ]

        processing_ms = int((time.monotonic() - start) * 1000)
        AuditLogger.log_security_event(
            user_id,
            "message_processed",
            RESOURCE,
            {
                "conversationId": conversation_id.value,
                "messageLength": len(sanitized),
                "aiModel": reply.model,
                "processingTime": processing_ms,
                "tier": tier.value,
                "tokensUsed": reply.tokens_used,
            },
            "low",
            command.request,
        )
        await self._track_analytics(command, conversation_id, reply, tier, processing_ms)

        return SendMessageResult(
            messages=response_messages,
            conversation_id=conversation_id,
            reply=reply,
            tier=tier,
            daily=daily,
            rate=rate,
        )

    async def _generate_reply(
        self,
        message: str,
        user_id: str,
        conversation_id: ConversationId,
        service_tier: UserServiceTier,
    ) -> ModelReply:
        ai_start = time.monotonic()
        tier = service_tier.tier
        try:
            original = detect_search_intent(message)
            intent = apply_tier_restrictions(original, service_tier)
            logger.debug("[SendMessage] Intent %s restricted to %s", original, intent)

            await self._track_features(user_id, intent, tier)
            upsell = self._upsell_for(original, intent, tier)

            data_context = ""
            if intent.search_required:
                data_context = await self.context_builder.gather_tiered_context(
                    message, user_id, intent, service_tier
                )

            history = await self.context_builder.gather_tiered_conversation_context(
                conversation_id, user_id, service_tier
            )

            profile = None
            if service_tier.features.personalized_greeting:
                profile = await self.tiers.profile(user_id)

            system_prompt = ChatPrompts.build_tiered_system_prompt(
                data_context,
                service_tier,
                profile,
                bool(history),
                intent.blocked_features,
            )

            llm_messages = [{"role": "system", "content": system_prompt}]
            if data_context:
                llm_messages.append(
                    {"role": "system", "content": f"Available Data:\n{data_context}"}
                )
            history_limit = service_tier.limits.conversation_history
            if history and history_limit:
                llm_messages.extend(history[-history_limit:])
            llm_messages.append({"role": "user", "content": message})

            completion = await chat_completion(
                self.openai_client,
                messages=llm_messages,
                model=service_tier.model_to_use,
                temperature=FREE_TEMPERATURE if service_tier.is_free else PAID_TEMPERATURE,
                max_tokens=service_tier.limits.max_tokens,
                presence_penalty=0,
                frequency_penalty=0,
            )
            content = get_content(completion) or ChatPrompts.EMPTY_COMPLETION
            if upsell:
                content += upsell

            prompt_tokens, completion_tokens, total_tokens = get_usage(completion)
            response_ms = int((time.monotonic() - ai_start) * 1000)
            logger.info("[SendMessage] %s response generated (%dms)", tier.value, response_ms)
            return ModelReply(
                content=content,
                model=service_tier.model_to_use,
                success=True,
                metadata={
                    "responseTime": response_ms,
                    "tokensUsed": total_tokens,
                    "promptTokens": prompt_tokens,
                    "completionTokens": completion_tokens,
                    "finishReason": get_finish_reason(completion) or "unknown",
                    "serviceTier": tier.value,
                    "featuresUsed": intent.to_dict(),
                    "blockedFeatures": intent.blocked_features.to_dict(),
                    "upsellShown": bool(upsell),
                    "conversationHistoryUsed": bool(history),
                    "airtableDataUsed": bool(data_context),
                },
            )
        except Exception as e:
            logger.error("[SendMessage] Model call failed: %s", e)
            AuditLogger.log_security_event(
                user_id,
                "openai_api_error",
                RESOURCE,
                {"error": str(e), "model": service_tier.model_to_use},
                "medium",
            )
            return ModelReply(
                content=ChatPrompts.llm_failure(),
                model="fallback",
                success=False,
                metadata={
                    "responseTime": int((time.monotonic() - ai_start) * 1000),
                    "tokensUsed": 0,
                    "error": str(e)
                    if Config.APP_ENV == "development"
                    else "OpenAI service unavailable",
                },
            )

    async def _track_features(
        self, user_id: str, intent: SearchIntent, tier: SubscriptionTier
    ) -> None:
        if intent.search_opportunities:
            await self.usage.track_feature_usage(user_id, "opportunities", tier)
        if intent.get_user_matches:
            await self.usage.track_feature_usage(user_id, "matches", tier)
        if intent.search_resources:
            await self.usage.track_feature_usage(user_id, "resources", tier)

    @staticmethod
    def _upsell_for(
        original: SearchIntent, restricted: SearchIntent, tier: SubscriptionTier
    ) -> str:
        upsell = ""
        blocked = restricted.blocked_features
        if blocked.opportunities and original.search_opportunities:
            increment_blocked_feature("opportunities")
            upsell += get_feature_upsell_message("opportunities", tier)
        if blocked.matches and original.get_user_matches:
            increment_blocked_feature("matches")
            upsell += get_feature_upsell_message("matches", tier)
        return upsell

    async def _store_messages(
        self,
        conversation_id: ConversationId,
        user_id: str,
        user_message: str,
        reply: ModelReply,
    ) -> ConversationId:
        """Store both messages; returns the id they were stored under."""
        if conversation_id.is_temporary:
            logger.debug("[SendMessage] Skipping storage for temporary conversation")
            return conversation_id
        try:
            if await self.conversations.get(conversation_id, user_id) is None:
                today = datetime.now(timezone.utc)
                created = await self.conversations.create(
                    user_id, f"Chat {today.month}/{today.day}/{today.year}"
                )
                logger.info(
                    "[SendMessage] Created conversation %s in place of %s",
                    created.value,
                    conversation_id.value,
                )
                conversation_id = created

            await self.messages.add(
                conversation_id,
                "user",
                user_message,
                metadata={"timestamp": datetime.now(timezone.utc).isoformat()},
            )
            await self.messages.add(
                conversation_id, "assistant", reply.content, metadata=reply.metadata
            )
        except Exception as e:
            logger.error("[SendMessage] Failed to store conversation messages: %s", e)
        return conversation_id

    async def _track_analytics(
        self,
        command: SendMessageCommand,
        conversation_id: ConversationId,
        reply: ModelReply,
        tier: SubscriptionTier,
        processing_ms: int,
    ) -> None:
        request = command.request
        ip = client_ip(request)
        try:
            await self.analytics.track_event(
                command.user_id,
                command.session_id,
                "message_sent",
                {
                    "conversationId": conversation_id.value,
                    "aiModel": reply.model,
                    "tier": tier.value,
                    "tokensUsed": reply.tokens_used,
                    "processingTime": processing_ms,
                    "success": reply.success,
                },
                user_agent=request.headers.get("user-agent") if request else None,
                ip_address=None if ip == "unknown" else ip,
            )
        except Exception as e:
            logger.warning("[SendMessage] Analytics tracking failed: %s", e)
