"""Feedback API Router - POST /feedback."""

from typing import Optional

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field

from src.application.commands.feedback import SubmitFeedbackCommand, SubmitFeedbackHandler
from src.presentation.api.responses import success_response
from src.presentation.dependencies.auth import SessionUser, get_session_user


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rating: int
    comment: str = ""
    category: str = "other"
    message_id: Optional[str] = Field(default=None, alias="messageId")


router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", status_code=status.HTTP_201_CREATED)
@inject
async def submit_feedback(
    body: FeedbackRequest,
    request: Request,
    handler: FromDishka[SubmitFeedbackHandler],
    session: SessionUser = Depends(get_session_user),
):
    await handler.execute(
        SubmitFeedbackCommand(
            user_id=session.user_id,
            rating=body.rating,
            comment=body.comment,
            category=body.category,
            message_id=body.message_id,
        )
    )
    return success_response(request, {"received": True}, status_code=status.HTTP_201_CREATED)
