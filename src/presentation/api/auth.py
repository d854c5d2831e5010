"""
Auth API Router - anonymous chat sessions and email verification.

POST /auth/session      → anonymous session token (1h)
POST /auth/verify-user  → authenticated session for a known veteran (30m)
"""

from logging import getLogger
from typing import Optional

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.application.commands.auth import (
    CreateSessionCommand,
    CreateSessionHandler,
    VerifyUserCommand,
    VerifyUserHandler,
)
from src.config.settings import Config
from src.presentation.api.responses import response_metadata, success_response

logger = getLogger(__name__)


# ==================== REQUEST MODELS ====================


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    timestamp: Optional[str] = None
    embedded: bool = False


class VerifyUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: Optional[str] = None
    softr_token: Optional[str] = Field(default=None, alias="softrToken")
    user_agent: Optional[str] = Field(default=None, alias="userAgent")


# ==================== ROUTER ====================

router = APIRouter(prefix="/auth", tags=["auth"])


def _preflight(methods: str) -> Response:
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": Config.ALLOWED_ORIGIN,
            "Access-Control-Allow-Methods": methods,
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
        },
    )


@router.post("/session")
@inject
async def create_session(
    body: CreateSessionRequest,
    request: Request,
    handler: FromDishka[CreateSessionHandler],
):
    result = await handler.execute(
        CreateSessionCommand(
            user_agent=body.user_agent,
            timestamp=body.timestamp,
            embedded=body.embedded,
            request=request,
        )
    )
    metadata = response_metadata(request)
    metadata.pop("requestId")
    return JSONResponse(
        content={
            "success": True,
            "sessionToken": result.session_token,
            "sessionId": result.session_id,
            "userId": result.user_id,
            "expiresIn": result.expires_in,
            "metadata": metadata,
        }
    )


@router.options("/session")
async def session_preflight():
    return _preflight("POST, OPTIONS")


@router.post("/verify-user")
@inject
async def verify_user(
    body: VerifyUserRequest,
    request: Request,
    handler: FromDishka[VerifyUserHandler],
):
    verified = await handler.execute(
        VerifyUserCommand(
            email=body.email,
            platform_token=body.softr_token,
            user_agent=body.user_agent,
            request=request,
        )
    )
    return success_response(
        request,
        verified.to_dict(),
        metadata={"rateLimit": verified.auth_rate_limit},
    )


@router.options("/verify-user")
async def verify_user_preflight():
    return _preflight("POST, OPTIONS")
