"""
GetChatHistory Query - A stored conversation with its recent messages.

Used by the chat window to reload a conversation after the embed restarts.
"""

from dataclasses import dataclass

from src.application.common.interfaces import Query, QueryHandler
from src.domain.entities.conversation import Conversation
from src.domain.entities.message import Message
from src.domain.exceptions import EntityNotFoundError
from src.domain.ports.repositories import ConversationRepository, MessageRepository
from src.domain.value_objects.conversation_id import ConversationId

DEFAULT_MESSAGE_LIMIT = 50


@dataclass
class GetChatHistoryResult:
    conversation: Conversation
    messages: list[Message]


@dataclass(frozen=True)
class GetChatHistoryQuery(Query[GetChatHistoryResult]):
    conversation_id: ConversationId
    user_id: str
    limit: int = DEFAULT_MESSAGE_LIMIT


class GetChatHistoryHandler(QueryHandler[GetChatHistoryResult]):
    def __init__(
        self,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
    ):
        self._conv_repo = conv_repo
        self._msg_repo = msg_repo

    async def execute(self, query: GetChatHistoryQuery) -> GetChatHistoryResult:
        """
        Raises:
            EntityNotFoundError: conversation doesn't exist (or is temporary)
            AccessDeniedError: user doesn't own the conversation
        """
        if query.conversation_id.is_temporary:
            raise EntityNotFoundError("Temporary conversations are not stored")

        # get() enforces ownership
        conversation = await self._conv_repo.get(query.conversation_id, query.user_id)
        if not conversation:
            raise EntityNotFoundError(
                f"Conversation {query.conversation_id.value} not found"
            )

        messages = await self._msg_repo.get_for_conversation(
            query.conversation_id, query.user_id, limit=query.limit
        )
        return GetChatHistoryResult(conversation=conversation, messages=messages)
