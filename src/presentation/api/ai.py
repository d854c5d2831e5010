"""
AI API Router - application drafting and document analysis.

Both endpoints require a session. Documents are PII-redacted before they
reach any provider.
"""

from logging import getLogger
from typing import Any

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from src.application.commands.ai import (
    AnalyzeDocumentCommand,
    AnalyzeDocumentHandler,
    GenerateApplicationDraftCommand,
    GenerateApplicationDraftHandler,
)
from src.presentation.api.responses import success_response
from src.presentation.dependencies.auth import SessionUser, get_session_user

logger = getLogger(__name__)


class ApplicationDraftRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    opportunity: dict[str, Any]
    requirements: list[str] = Field(default_factory=list)
    user_profile: dict[str, Any] = Field(default_factory=dict, alias="userProfile")


class AnalyzeDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    document_type: str = Field(default="document", alias="documentType")


router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/application-draft")
@inject
async def application_draft(
    body: ApplicationDraftRequest,
    request: Request,
    handler: FromDishka[GenerateApplicationDraftHandler],
    session: SessionUser = Depends(get_session_user),
):
    result = await handler.execute(
        GenerateApplicationDraftCommand(
            user_id=session.user_id,
            opportunity=body.opportunity,
            requirements=tuple(body.requirements),
            user_profile=body.user_profile,
        )
    )
    data = result.response.to_dict()
    data["documentId"] = result.document_id or None
    return success_response(request, data)


@router.post("/analyze-document")
@inject
async def analyze_document(
    body: AnalyzeDocumentRequest,
    request: Request,
    handler: FromDishka[AnalyzeDocumentHandler],
    session: SessionUser = Depends(get_session_user),
):
    response = await handler.execute(
        AnalyzeDocumentCommand(
            user_id=session.user_id, text=body.text, document_type=body.document_type
        )
    )
    return success_response(request, response.to_dict())
