"""
Airtable Conversation Repository Implementation.

Conversations are keyed by the `Conversation_ID` field (32-char hex),
not by the Airtable record id.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from src.domain.entities.conversation import Conversation
from src.domain.exceptions import AccessDeniedError
from src.domain.ports.repositories import ConversationRepository
from src.domain.value_objects.conversation_id import ConversationId
from src.infrastructure.airtable import (
    AirtableRecord,
    AirtableTables,
    field_equals,
    formula_literal,
    safe_table_operation,
)
from src.infrastructure.airtable.mappers import map_conversation_record
from src.infrastructure.airtable.tables import CONVERSATIONS
from src.observability.audit import AuditLogger
from src.utils.security import SecurityManager

logger = logging.getLogger(__name__)


async def find_conversation_record(
    tables: AirtableTables, conversation_id: ConversationId
) -> Optional[AirtableRecord]:
    records = await tables.select(
        CONVERSATIONS,
        filter_by_formula=field_equals("Conversation_ID", conversation_id.value),
        max_records=1,
    )
    return records[0] if records else None


class AirtableConversationRepository(ConversationRepository):
    def __init__(self, tables: AirtableTables):
        self._tables = tables

    async def create(
        self, user_id: str, title: str, is_encrypted: bool = False
    ) -> ConversationId:
        conversation_id = ConversationId(SecurityManager.generate_token(16))

        async def operation():
            now = datetime.now(timezone.utc).isoformat()
            await self._tables.create(
                CONVERSATIONS,
                {
                    "Conversation_ID": conversation_id.value,
                    "User_ID": user_id,
                    "Title": title,
                    "Is_Encrypted": is_encrypted,
                    "Status": "active",
                    "Created_At": now,
                    "Updated_At": now,
                    "Last_Message_At": now,
                    "Message_Count": 0,
                },
            )
            AuditLogger.log_data_access(
                user_id, "conversation", conversation_id.value, "write"
            )

        await safe_table_operation(operation, "Conversations", "create")
        return conversation_id

    async def get_by_user(self, user_id: str) -> list[Conversation]:
        async def operation():
            records = await self._tables.select(
                CONVERSATIONS,
                filter_by_formula=(
                    f"AND({field_equals('User_ID', user_id)}, "
                    f"{{Status}} != {formula_literal('deleted')})"
                ),
                sort=[("Last_Message_At", "desc")],
            )
            return [map_conversation_record(r) for r in records]

        return await safe_table_operation(operation, "Conversations", "get_by_user") or []

    async def get(
        self, conversation_id: ConversationId, user_id: str
    ) -> Optional[Conversation]:
        async def operation():
            return await find_conversation_record(self._tables, conversation_id)

        record = await safe_table_operation(operation, "Conversations", "get")
        if record is None:
            return None
        conversation = map_conversation_record(record)
        if not conversation.is_owned_by(user_id):
            logger.warning(
                "[Conversations] %s denied access to %s", user_id, conversation_id
            )
            raise AccessDeniedError("Unauthorized access to conversation")
        return conversation
