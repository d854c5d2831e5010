"""List Conversations Query."""

from dataclasses import dataclass

from src.application.common.interfaces import Query, QueryHandler
from src.domain.entities.conversation import Conversation
from src.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)


@dataclass(frozen=True)
class ListConversationsQuery(Query[list[Conversation]]):
    user_id: str
    limit: int = 50


class ListConversationsHandler(QueryHandler[list[Conversation]]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, query: ListConversationsQuery) -> list[Conversation]:
        conversations = await self._conversation_repository.get_by_user(query.user_id)
        return conversations[: query.limit]
