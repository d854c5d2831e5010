"""
Chat API Router.

POST /chat/send-message takes the session token in the body (the embed
widget has no Authorization header plumbing), so it validates the body by
hand instead of through a Pydantic 422.
"""

from logging import getLogger

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Request

from src.application.commands.chat import SendMessageCommand, SendMessageHandler
from src.application.common.errors import ApiError
from src.application.dto.chat import SendMessageRequest
from src.presentation.api.responses import success_response
from src.presentation.dependencies.auth import verify_session_token

logger = getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/send-message")
@inject
async def send_message(
    body: SendMessageRequest,
    request: Request,
    handler: FromDishka[SendMessageHandler],
):
    logger.info(
        "[Chat] Request received: message_length=%s has_session_token=%s",
        len(body.message) if isinstance(body.message, str) else None,
        bool(body.session_token),
    )
    if not body.message or not isinstance(body.message, str):
        raise ApiError(400, "INVALID_MESSAGE", "Message content is required")
    if not body.session_token:
        raise ApiError(401, "UNAUTHORIZED", "Session token is required")

    session = verify_session_token(body.session_token, "chat/send-message", request)

    result = await handler.execute(
        SendMessageCommand(
            user_id=session.user_id,
            message=body.message,
            session_id=session.session_id,
            conversation_id=body.conversation_id,
            attachments=tuple(body.attachments),
            request=request,
        )
    )
    return success_response(request, result.to_dict(), headers=result.headers)
