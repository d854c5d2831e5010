"""
Conversations API Router - stored chat history for the signed-in session.

Handlers raise EntityNotFoundError / AccessDeniedError / DomainValidationError;
the app-level exception handlers turn them into 404 / 403 / 400 envelopes.
"""

from logging import getLogger

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Depends, Query, Request

from src.application.dto.chat import MessageDTO
from src.application.dto.conversation import ConversationDTO
from src.application.queries.chat import GetChatHistoryHandler, GetChatHistoryQuery
from src.application.queries.conversations import (
    ListConversationsHandler,
    ListConversationsQuery,
)
from src.domain.exceptions import DomainValidationError
from src.domain.value_objects.conversation_id import ConversationId
from src.presentation.api.responses import success_response
from src.presentation.dependencies.auth import SessionUser, get_session_user

logger = getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _conversation_dto(conversation) -> dict:
    return ConversationDTO(
        id=conversation.id.value,
        title=conversation.title,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        last_message_at=conversation.last_message_at,
        message_count=conversation.message_count,
        status=conversation.status,
    ).model_dump(mode="json", by_alias=True)


@router.get("")
@inject
async def list_conversations(
    request: Request,
    handler: FromDishka[ListConversationsHandler],
    session: SessionUser = Depends(get_session_user),
    limit: int = Query(default=50, ge=1, le=100),
):
    conversations = await handler.execute(
        ListConversationsQuery(user_id=session.user_id, limit=limit)
    )
    return success_response(
        request,
        {
            "conversations": [_conversation_dto(c) for c in conversations],
            "total": len(conversations),
        },
    )


@router.get("/{conversation_id}/messages")
@inject
async def get_conversation_messages(
    conversation_id: str,
    request: Request,
    handler: FromDishka[GetChatHistoryHandler],
    session: SessionUser = Depends(get_session_user),
    limit: int = Query(default=50, ge=1, le=100),
):
    try:
        parsed_id = ConversationId(conversation_id)
    except ValueError as e:
        raise DomainValidationError(str(e)) from e
    result = await handler.execute(
        GetChatHistoryQuery(
            conversation_id=parsed_id,
            user_id=session.user_id,
            limit=limit,
        )
    )
    messages = [
        MessageDTO(
            id=m.id,
            conversation_id=m.conversation_id.value,
            role=m.role,
            content=m.content,
            timestamp=m.timestamp,
            metadata=m.metadata,
            edited=m.edited,
        ).model_dump(mode="json", by_alias=True)
        for m in result.messages
    ]
    return success_response(
        request,
        {"conversation": _conversation_dto(result.conversation), "messages": messages},
    )
