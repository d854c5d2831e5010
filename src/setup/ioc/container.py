"""
Dishka DI Container Setup.

- InfrastructureProvider: long-lived clients (Airtable, LLM providers,
  Redis-backed usage tracker) and the in-process security state.
- RepositoryProvider: Airtable implementations bound to the domain ports.
- ServiceProvider: services plus every command/query handler.

Scope.APP = created once and shared; Scope.REQUEST = new instance per request.

Flow:
  Container → provides → AirtableConversationRepository → to → SendMessageHandler
                                    ↓
                            uses ConversationRepository interface
"""

import logging
from typing import AsyncIterable, Optional

import httpx
from anthropic import AsyncAnthropic
from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from openai import AsyncOpenAI

from src.application.commands.ai import (
    AnalyzeDocumentHandler,
    GenerateApplicationDraftHandler,
)
from src.application.commands.auth import CreateSessionHandler, VerifyUserHandler
from src.application.commands.chat import SendMessageHandler
from src.application.commands.feedback import SubmitFeedbackHandler
from src.application.commands.maintenance import (
    CleanupOldDataHandler,
    SweepInProcessStateHandler,
)
from src.application.queries.chat import GetChatHistoryHandler
from src.application.queries.conversations import ListConversationsHandler
from src.application.queries.health import CheckDatabaseHandler
from src.application.queries.user import GetUserTierHandler
from src.config.settings import Config
from src.domain.ports.database_inspector import DatabaseInspector
from src.domain.ports.repositories import (
    AnalyticsRepository,
    CatalogRepository,
    ConversationRepository,
    MessageRepository,
    UserRepository,
)
from src.domain.ports.usage_tracker import UsageTracker
from src.infrastructure.airtable.client import AirtableClient
from src.infrastructure.airtable.tables import AirtableTables
from src.infrastructure.cache import (
    InMemoryUsageTracker,
    RedisUsageTracker,
    close_redis_client,
    create_redis_client,
)
from src.infrastructure.persistence import (
    AirtableAnalyticsRepository,
    AirtableCatalogRepository,
    AirtableConversationRepository,
    AirtableMessageRepository,
    AirtableUserRepository,
)
from src.services.ai_service import AIService
from src.services.chat_context import ChatContextBuilder
from src.services.tier_resolver import TierResolver
from src.utils.rate_limiter import RateLimiter
from src.utils.security import SecurityManager
from src.utils.sessions import SessionManager

logger = logging.getLogger(__name__)


class InfrastructureProvider(Provider):
    """Singletons: external clients and in-process state."""

    # ==================== AIRTABLE ====================

    @provide(scope=Scope.APP)
    async def get_airtable_client(self) -> AsyncIterable[AirtableClient]:
        client = AirtableClient()
        yield client
        await client.aclose()

    @provide(scope=Scope.APP)
    def get_airtable_tables(self, client: AirtableClient) -> AirtableTables:
        return AirtableTables(client)

    @provide(scope=Scope.APP)
    def get_database_inspector(self, tables: AirtableTables) -> DatabaseInspector:
        return tables

    # ==================== LLM PROVIDERS ====================

    @provide(scope=Scope.APP)
    async def get_openai_client(self) -> AsyncIterable[AsyncOpenAI]:
        client = AsyncOpenAI(api_key=Config.OPENAI_KEY, max_retries=Config.LLM_MAX_RETRIES)
        yield client
        await client.close()

    @provide(scope=Scope.APP)
    async def get_anthropic_client(self) -> AsyncIterable[Optional[AsyncAnthropic]]:
        """Claude fallback; None when ANTHROPIC_API_KEY is unset."""
        if not Config.ANTHROPIC_API_KEY:
            yield None
            return
        client = AsyncAnthropic(
            api_key=Config.ANTHROPIC_API_KEY, max_retries=Config.LLM_MAX_RETRIES
        )
        yield client
        await client.close()

    @provide(scope=Scope.APP)
    async def get_http_client(self) -> AsyncIterable[httpx.AsyncClient]:
        """Shared client for REST-only providers (Perplexity)."""
        client = httpx.AsyncClient()
        yield client
        await client.aclose()

    # ==================== USAGE / SECURITY ====================

    @provide(scope=Scope.APP)
    async def get_usage_tracker(self) -> AsyncIterable[UsageTracker]:
        """
        Redis when USAGE_BACKEND=redis, otherwise in-process counters.

        Counters in memory are per worker; run a single worker or use Redis.
        """
        if Config.USAGE_BACKEND == "redis":
            redis = await create_redis_client()
            yield RedisUsageTracker(redis)
            await close_redis_client(redis)
            return
        logger.info("[Usage] Using in-memory usage tracker")
        yield InMemoryUsageTracker()

    @provide(scope=Scope.APP)
    def get_security_manager(self) -> SecurityManager:
        return SecurityManager()

    @provide(scope=Scope.APP)
    def get_rate_limiter(self) -> RateLimiter:
        return RateLimiter()

    @provide(scope=Scope.APP)
    def get_session_manager(self) -> SessionManager:
        return SessionManager()


class RepositoryProvider(Provider):
    """
    Port → Airtable implementation bindings.

    - Return type is ABSTRACT (e.g. ConversationRepository)
    - Implementation is CONCRETE (AirtableConversationRepository)
    """

    @provide(scope=Scope.REQUEST)
    def get_user_repository(
        self, tables: AirtableTables, rate_limiter: RateLimiter
    ) -> UserRepository:
        return AirtableUserRepository(tables, rate_limiter)

    @provide(scope=Scope.REQUEST)
    def get_conversation_repository(self, tables: AirtableTables) -> ConversationRepository:
        return AirtableConversationRepository(tables)

    @provide(scope=Scope.REQUEST)
    def get_message_repository(
        self,
        tables: AirtableTables,
        conversations: ConversationRepository,
        security: SecurityManager,
    ) -> MessageRepository:
        return AirtableMessageRepository(tables, conversations, security)

    @provide(scope=Scope.REQUEST)
    def get_catalog_repository(self, tables: AirtableTables) -> CatalogRepository:
        return AirtableCatalogRepository(tables)

    @provide(scope=Scope.REQUEST)
    def get_analytics_repository(self, tables: AirtableTables) -> AnalyticsRepository:
        return AirtableAnalyticsRepository(tables, enabled=Config.ENABLE_ANALYTICS)


class ServiceProvider(Provider):
    """Services and command/query handlers, auto-wired from the ports above."""

    # ==================== SERVICES ====================

    @provide(scope=Scope.REQUEST)
    def get_tier_resolver(self, users: UserRepository, usage: UsageTracker) -> TierResolver:
        return TierResolver(users, usage)

    @provide(scope=Scope.REQUEST)
    def get_context_builder(
        self, catalog: CatalogRepository, messages: MessageRepository
    ) -> ChatContextBuilder:
        return ChatContextBuilder(catalog, messages)

    @provide(scope=Scope.APP)
    def get_ai_service(
        self,
        openai_client: AsyncOpenAI,
        anthropic_client: Optional[AsyncAnthropic],
        http_client: httpx.AsyncClient,
    ) -> AIService:
        return AIService(
            openai_client=openai_client,
            anthropic_client=anthropic_client,
            http_client=http_client,
        )

    # ==================== CHAT ====================

    @provide(scope=Scope.REQUEST)
    def get_send_message_handler(
        self,
        tiers: TierResolver,
        usage: UsageTracker,
        conversations: ConversationRepository,
        messages: MessageRepository,
        analytics: AnalyticsRepository,
        context_builder: ChatContextBuilder,
        openai_client: AsyncOpenAI,
    ) -> SendMessageHandler:
        return SendMessageHandler(
            tiers=tiers,
            usage=usage,
            conversations=conversations,
            messages=messages,
            analytics=analytics,
            context_builder=context_builder,
            openai_client=openai_client,
        )

    @provide(scope=Scope.REQUEST)
    def get_chat_history_handler(
        self, conversations: ConversationRepository, messages: MessageRepository
    ) -> GetChatHistoryHandler:
        return GetChatHistoryHandler(conv_repo=conversations, msg_repo=messages)

    @provide(scope=Scope.REQUEST)
    def get_list_conversations_handler(
        self, conversations: ConversationRepository
    ) -> ListConversationsHandler:
        return ListConversationsHandler(conversations)

    # ==================== AUTH ====================

    @provide(scope=Scope.REQUEST)
    def get_create_session_handler(
        self, security: SecurityManager, sessions: SessionManager
    ) -> CreateSessionHandler:
        return CreateSessionHandler(security, sessions)

    @provide(scope=Scope.REQUEST)
    def get_verify_user_handler(
        self,
        users: UserRepository,
        security: SecurityManager,
        rate_limiter: RateLimiter,
        sessions: SessionManager,
    ) -> VerifyUserHandler:
        return VerifyUserHandler(users, security, rate_limiter, sessions)

    # ==================== USER / HEALTH ====================

    @provide(scope=Scope.REQUEST)
    def get_user_tier_handler(self, tiers: TierResolver) -> GetUserTierHandler:
        return GetUserTierHandler(tiers)

    @provide(scope=Scope.REQUEST)
    def get_check_database_handler(
        self, inspector: DatabaseInspector
    ) -> CheckDatabaseHandler:
        return CheckDatabaseHandler(inspector)

    # ==================== FEEDBACK / AI ====================

    @provide(scope=Scope.REQUEST)
    def get_submit_feedback_handler(
        self, analytics: AnalyticsRepository
    ) -> SubmitFeedbackHandler:
        return SubmitFeedbackHandler(analytics)

    @provide(scope=Scope.REQUEST)
    def get_application_draft_handler(
        self, ai: AIService, users: UserRepository, analytics: AnalyticsRepository
    ) -> GenerateApplicationDraftHandler:
        return GenerateApplicationDraftHandler(ai, users, analytics)

    @provide(scope=Scope.REQUEST)
    def get_analyze_document_handler(self, ai: AIService) -> AnalyzeDocumentHandler:
        return AnalyzeDocumentHandler(ai)

    # ==================== MAINTENANCE ====================

    @provide(scope=Scope.REQUEST)
    def get_cleanup_handler(self, messages: MessageRepository) -> CleanupOldDataHandler:
        return CleanupOldDataHandler(messages)

    @provide(scope=Scope.APP)
    def get_sweep_handler(
        self, sessions: SessionManager, rate_limiter: RateLimiter
    ) -> SweepInProcessStateHandler:
        return SweepInProcessStateHandler(sessions, rate_limiter)


def default_providers() -> list[Provider]:
    return [InfrastructureProvider(), RepositoryProvider(), ServiceProvider()]


def create_container(*providers: Provider) -> AsyncContainer:
    """
    Create the DI container.

    Extra providers are applied after the defaults, so tests can override
    any binding (e.g. swap repositories for in-memory fakes).
    """
    return make_async_container(*default_providers(), *providers)
