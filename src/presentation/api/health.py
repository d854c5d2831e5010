"""Health API Router - liveness, Airtable table status and AI provider probes."""

from datetime import datetime, timezone
from logging import getLogger

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.application.queries.health import CheckDatabaseHandler, CheckDatabaseQuery
from src.presentation.api.responses import success_response
from src.services.ai_service import AIService

logger = getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health():
    return {"status": "healthy"}


@router.get("/database")
@inject
async def database_health(handler: FromDishka[CheckDatabaseHandler]):
    try:
        result = await handler.execute(CheckDatabaseQuery())
    except Exception as e:
        logger.error("[Health] Database health check error: %s", e, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Database health check failed",
                "details": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    if not result.configured:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Missing Airtable configuration",
                "details": {"hasToken": result.has_token, "hasBaseId": result.has_base_id},
            },
        )
    return result.to_dict()


@router.get("/ai")
@inject
async def ai_health(request: Request, ai: FromDishka[AIService]):
    providers = await ai.health_check()
    return success_response(
        request, {"providers": providers, "healthy": any(providers.values())}
    )
