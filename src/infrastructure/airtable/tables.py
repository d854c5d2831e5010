"""
Logical table registry for the VADIY Airtable base.

Bases in the wild name their tables inconsistently, so each logical table
has a list of candidate names (env override first). The first candidate
that answers a one-record probe wins and is cached for the process.
Unresolved tables read as empty and raise AirtableNotFoundError on writes.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from src.config.settings import Config
from src.domain.exceptions import ExternalServiceError
from src.domain.ports.database_inspector import DatabaseInspector
from src.infrastructure.airtable.client import (
    AirtableClient,
    AirtableError,
    AirtableNotFoundError,
    AirtableRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

USERS = "users"
OPPORTUNITIES = "opportunities"
RESOURCES = "resources"
MATCHES = "matches"
MATCHES_RESOURCES = "matches_resources"
CONVERSATIONS = "conversations"
MESSAGES = "messages"
CHAT_ANALYTICS = "chat_analytics"
DOCUMENTS = "documents"
SESSIONS = "sessions"
FEEDBACK = "feedback"
VETERAN_NEWS = "veteran_news"
CHAT_TRANSCRIPTS = "chat_transcripts"
VETERAN_CHAT = "veteran_chat"


def table_variations() -> dict[str, list[str]]:
    """Candidate table names per logical table; empty overrides are skipped."""
    raw = {
        USERS: [
            Config.AIRTABLE_USERS_TABLE,
            "User Profiles",
            "Users",
            "Veterans",
            "Veteran Profiles",
        ],
        OPPORTUNITIES: [
            Config.AIRTABLE_OPPORTUNITIES_TABLE,
            "Opportunities",
            "opportunities",
            "Jobs",
            "Employment",
            "Job Opportunities",
            "Career Opportunities",
        ],
        RESOURCES: [
            Config.AIRTABLE_RESOURCES_TABLE,
            "Resources",
            "Benefits",
            "Services",
            "Support Resources",
            "Veteran Resources",
        ],
        MATCHES: [
            Config.AIRTABLE_MATCHES_TABLE,
            "Matches",
            "User Matches",
            "Opportunity Matches",
            "Job Matches",
        ],
        MATCHES_RESOURCES: [
            Config.AIRTABLE_MATCHES_RESOURCES_TABLE,
            "MatchesResources",
            "Resource Matches",
            "User Resource Matches",
            "Matches_Resources",
        ],
        CONVERSATIONS: [
            Config.AIRTABLE_CONVERSATIONS_TABLE,
            "Conversations",
            "Chat Conversations",
            "User Conversations",
        ],
        MESSAGES: [
            Config.AIRTABLE_MESSAGES_TABLE,
            "Messages",
            "Chat Messages",
            "Conversation Messages",
        ],
        CHAT_ANALYTICS: [
            Config.AIRTABLE_CHAT_ANALYTICS_TABLE,
            "Chat_Analytics",
            "Analytics",
            "Chat Analytics",
            "Usage Analytics",
        ],
        DOCUMENTS: [
            Config.AIRTABLE_DOCUMENTS_TABLE,
            "Generated_Documents",
            "Documents",
            "Generated Documents",
            "User Documents",
        ],
        SESSIONS: [
            Config.AIRTABLE_SESSIONS_TABLE,
            "User_Sessions",
            "Sessions",
            "User Sessions",
            "Chat Sessions",
        ],
        FEEDBACK: [
            Config.AIRTABLE_FEEDBACK_TABLE,
            "User_Feedback",
            "Feedback",
            "User Feedback",
            "Chat Feedback",
        ],
        VETERAN_NEWS: [Config.AIRTABLE_VETERAN_NEWS_TABLE, "Veteran News"],
        CHAT_TRANSCRIPTS: [Config.AIRTABLE_CHAT_TRANSCRIPTS_TABLE, "ChatTranscripts"],
        VETERAN_CHAT: [Config.AIRTABLE_VETERAN_CHAT_TABLE, "VeteranChat"],
    }
    return {key: [name for name in names if name] for key, names in raw.items()}


# Labels reported by test_connection, in display order
CONNECTION_TEST_TABLES: list[tuple[str, str]] = [
    ("User Profiles", USERS),
    ("Opportunities", OPPORTUNITIES),
    ("Resources", RESOURCES),
    ("Matches", MATCHES),
    ("MatchesResources", MATCHES_RESOURCES),
    ("Conversations", CONVERSATIONS),
    ("Messages", MESSAGES),
    ("Chat_Analytics", CHAT_ANALYTICS),
    ("Generated_Documents", DOCUMENTS),
    ("User_Sessions", SESSIONS),
    ("User_Feedback", FEEDBACK),
]

CORE_TABLE_LABELS = ("User Profiles", "Opportunities", "Resources")

COMMON_TABLE_NAMES = [
    "Users", "User Profiles", "Veterans", "Veteran Profiles",
    "Opportunities", "Jobs", "Employment", "Career Opportunities", "Job Opportunities",
    "Resources", "Benefits", "Services", "Support Resources", "Veteran Resources",
    "Matches", "User Matches", "Job Matches", "Opportunity Matches",
    "MatchesResources", "Resource Matches", "User Resource Matches",
    "Conversations", "Chat Conversations", "User Conversations",
    "Messages", "Chat Messages", "Conversation Messages",
    "Analytics", "Chat Analytics", "Usage Analytics", "Chat_Analytics",
    "Documents", "Generated Documents", "User Documents", "Generated_Documents",
    "Sessions", "User Sessions", "Chat Sessions", "User_Sessions",
    "Feedback", "User Feedback", "Chat Feedback", "User_Feedback",
    "Applications", "User Applications", "Job Applications",
    "Profiles", "Settings", "Configuration", "Admin",
]  # fmt: skip


async def safe_table_operation(
    operation: Callable[[], Awaitable[T]], table_name: str, operation_type: str
) -> Optional[T]:
    """Run an operation; a missing table yields None.

    Any other Airtable failure is raised as ExternalServiceError.
    """
    try:
        return await operation()
    except AirtableNotFoundError:
        logger.warning(
            "[Airtable] Table '%s' not found. Operation: %s", table_name, operation_type
        )
        return None
    except AirtableError as e:
        logger.error(
            "[Airtable] Error in %s for table '%s'",
            operation_type,
            table_name,
            exc_info=True,
        )
        raise ExternalServiceError("Airtable", str(e)) from e


class AirtableTables(DatabaseInspector):
    """Routes logical table keys to the resolved Airtable table names."""

    def __init__(
        self,
        client: AirtableClient,
        variations: Optional[dict[str, list[str]]] = None,
    ):
        self.client = client
        self._variations = variations if variations is not None else table_variations()
        self._resolved: dict[str, Optional[str]] = {}
        self._lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    async def resolve(self, key: str) -> Optional[str]:
        if key in self._resolved:
            return self._resolved[key]
        async with self._lock:
            if key in self._resolved:
                return self._resolved[key]
            self._resolved[key] = await self._detect(key)
            return self._resolved[key]

    async def _detect(self, key: str) -> Optional[str]:
        candidates = self._variations.get(key, [])
        for name in candidates:
            try:
                if await self.client.probe(name):
                    logger.info("[Airtable] Found table '%s' for %s", name, key)
                    return name
            except AirtableError as e:
                logger.warning("[Airtable] Error testing table '%s': %s", name, e)
        logger.warning(
            "[Airtable] No table found for %s. Tried: %s", key, ", ".join(candidates)
        )
        return None

    async def _require(self, key: str) -> str:
        name = await self.resolve(key)
        if name is None:
            raise AirtableNotFoundError(f"Table for {key} not found")
        return name

    # ==================== RECORD OPERATIONS ====================

    async def select(
        self,
        key: str,
        filter_by_formula: Optional[str] = None,
        max_records: Optional[int] = None,
        sort: Optional[Sequence[tuple[str, str]]] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> list[AirtableRecord]:
        name = await self.resolve(key)
        if name is None:
            return []
        return await self.client.select(
            name,
            filter_by_formula=filter_by_formula,
            max_records=max_records,
            sort=sort,
            fields=fields,
        )

    async def find(self, key: str, record_id: str) -> AirtableRecord:
        return await self.client.find(await self._require(key), record_id)

    async def create(self, key: str, fields: dict[str, Any]) -> AirtableRecord:
        return await self.client.create(await self._require(key), fields)

    async def update(
        self, key: str, record_id: str, fields: dict[str, Any]
    ) -> AirtableRecord:
        return await self.client.update(await self._require(key), record_id, fields)

    async def destroy(self, key: str, record_id: str) -> None:
        await self.client.destroy(await self._require(key), record_id)

    # ==================== INSPECTION ====================

    async def test_connection(self) -> dict[str, bool]:
        results: dict[str, bool] = {}
        for label, key in CONNECTION_TEST_TABLES:
            try:
                name = await self.resolve(key)
                results[label] = name is not None and await self.client.probe(name)
            except AirtableError as e:
                logger.warning("[Airtable] %s (%s): ERROR - %s", label, key, e)
                results[label] = False
        accessible = sum(results.values())
        logger.info("[Airtable] %d/%d tables accessible", accessible, len(results))
        return results

    async def list_all_tables_in_base(self) -> list[str]:
        found = []
        for name in COMMON_TABLE_NAMES:
            try:
                if await self.client.probe(name):
                    found.append(name)
            except AirtableError as e:
                logger.debug("[Airtable] %s: %s", name, e)
        return found
