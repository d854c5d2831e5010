"""
Message Repository Port - Interface for message persistence.
Implementation: src/infrastructure/persistence/airtable_message_repository.py
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from src.domain.entities.message import Message
from src.domain.value_objects.conversation_id import ConversationId


class MessageRepository(ABC):
    @abstractmethod
    async def add(
        self,
        conversation_id: ConversationId,
        role: str,
        content: str,
        metadata: Optional[dict[str, Any]] = None,
        attachments: Optional[list[Any]] = None,
    ) -> str: ...

    @abstractmethod
    async def get_for_conversation(
        self, conversation_id: ConversationId, user_id: str, limit: int = 50
    ) -> list[Message]: ...

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int: ...
