"""
Airtable Message Repository Implementation.

Storage rules for user messages:
- encrypted conversation: Fernet ciphertext in `Encrypted_Content`,
  redacted text in `Content`
- plain conversation: PII-masked text in `Content`
Assistant and system messages are stored as-is.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from src.domain.entities.message import Message
from src.domain.exceptions import EntityNotFoundError
from src.domain.ports.repositories import ConversationRepository, MessageRepository
from src.domain.value_objects.conversation_id import ConversationId
from src.infrastructure.airtable import (
    AirtableTables,
    field_equals,
    formula_literal,
    safe_table_operation,
)
from src.infrastructure.airtable.mappers import map_message_record
from src.infrastructure.airtable.tables import CONVERSATIONS, MESSAGES
from src.infrastructure.persistence.airtable_conversation_repository import (
    find_conversation_record,
)
from src.utils.pii import PIIProtector
from src.utils.security import EncryptionError, SecurityManager

logger = logging.getLogger(__name__)

DECRYPTION_FAILED = "[Decryption failed]"


class AirtableMessageRepository(MessageRepository):
    def __init__(
        self,
        tables: AirtableTables,
        conversations: ConversationRepository,
        security: SecurityManager,
    ):
        self._tables = tables
        self._conversations = conversations
        self._security = security

    async def add(
        self,
        conversation_id: ConversationId,
        role: str,
        content: str,
        metadata: Optional[dict[str, Any]] = None,
        attachments: Optional[list[Any]] = None,
    ) -> str:
        message_id = SecurityManager.generate_token(16)

        conversation = await find_conversation_record(self._tables, conversation_id)
        if conversation is None:
            raise EntityNotFoundError(f"Conversation {conversation_id} not found")

        stored_content = content
        encrypted_content = None
        if role == "user":
            if conversation.get("Is_Encrypted"):
                encrypted_content = self._security.encrypt(content)
                stored_content = PIIProtector.redact_pii(content)
            else:
                stored_content = PIIProtector.mask_pii(content)

        async def operation():
            now = datetime.now(timezone.utc).isoformat()
            await self._tables.create(
                MESSAGES,
                {
                    "Message_ID": message_id,
                    "Conversation_ID": conversation_id.value,
                    "Role": role,
                    "Content": stored_content,
                    "Encrypted_Content": encrypted_content,
                    "Metadata": json.dumps(metadata or {}, default=str),
                    "Attachments": json.dumps(attachments or [], default=str),
                    "Timestamp": now,
                },
            )
            await self._tables.update(
                CONVERSATIONS,
                conversation.id,
                {
                    "Message_Count": int(conversation.get("Message_Count") or 0) + 1,
                    "Last_Message_At": now,
                    "Updated_At": now,
                },
            )

        await safe_table_operation(operation, "Messages", "add")
        return message_id

    async def get_for_conversation(
        self, conversation_id: ConversationId, user_id: str, limit: int = 50
    ) -> list[Message]:
        """Most recent `limit` messages, oldest first."""
        conversation = await self._conversations.get(conversation_id, user_id)
        if conversation is None:
            raise EntityNotFoundError("Conversation not found or unauthorized")

        async def operation():
            return await self._tables.select(
                MESSAGES,
                filter_by_formula=field_equals("Conversation_ID", conversation_id.value),
                sort=[("Timestamp", "desc")],
                max_records=limit,
            )

        records = await safe_table_operation(operation, "Messages", "get_for_conversation")
        messages = [map_message_record(r) for r in reversed(records or [])]

        if conversation.is_encrypted:
            for message in messages:
                if message.encrypted_content and message.role == "user":
                    try:
                        message.content = self._security.decrypt(message.encrypted_content)
                    except EncryptionError:
                        logger.error("[Messages] Failed to decrypt message %s", message.id)
                        message.content = DECRYPTION_FAILED
        return messages

    async def delete_older_than(self, cutoff: datetime) -> int:
        async def operation():
            records = await self._tables.select(
                MESSAGES,
                filter_by_formula=(
                    f"IS_BEFORE({{Timestamp}}, {formula_literal(cutoff.isoformat())})"
                ),
                fields=["Timestamp"],
            )
            for record in records:
                await self._tables.destroy(MESSAGES, record.id)
            return len(records)

        deleted = await safe_table_operation(operation, "Messages", "delete_older_than")
        logger.info("[Messages] Cleaned up %d old messages", deleted or 0)
        return deleted or 0
