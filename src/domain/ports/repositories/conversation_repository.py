"""
Conversation Repository Port - Interface for conversation persistence.
Implementation: src/infrastructure/persistence/airtable_conversation_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.entities.conversation import Conversation
from src.domain.value_objects.conversation_id import ConversationId


class ConversationRepository(ABC):
    @abstractmethod
    async def create(
        self, user_id: str, title: str, is_encrypted: bool = False
    ) -> ConversationId: ...

    @abstractmethod
    async def get(
        self, conversation_id: ConversationId, user_id: str
    ) -> Optional[Conversation]:
        """Load a conversation; raises AccessDeniedError for other owners."""
        ...

    @abstractmethod
    async def get_by_user(self, user_id: str) -> list[Conversation]: ...
