"""User API Router - GET /user/tier."""

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Depends, Request, Response

from src.application.queries.user import GetUserTierHandler, GetUserTierQuery
from src.config.settings import Config
from src.presentation.api.responses import success_response
from src.presentation.dependencies.auth import SessionUser, get_session_user

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/tier")
@inject
async def get_user_tier(
    request: Request,
    handler: FromDishka[GetUserTierHandler],
    session: SessionUser = Depends(get_session_user),
):
    result = await handler.execute(GetUserTierQuery(user_id=session.user_id))
    return success_response(request, result.to_dict())


@router.options("/tier")
async def tier_preflight():
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": Config.ALLOWED_ORIGIN,
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
        },
    )
