"""
FastAPI Application Factory.
Creates and configures the FastAPI application with all routers, middleware, and DI.

Every failure leaves through one of the exception handlers below and is
rendered as the standard error envelope (see presentation/api/responses.py).
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from dishka import AsyncContainer
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.application.commands.maintenance import (
    SweepInProcessStateHandler,
    run_periodic_sweep,
)
from src.application.common.errors import ApiError
from src.config.logging_config import setup_logging
from src.config.settings import Config
from src.domain.exceptions import (
    AccessDeniedError,
    DomainValidationError,
    EntityNotFoundError,
    ExternalServiceError,
)
from src.middleware import (
    CorrelationIdMiddleware,
    EmbedFrameMiddleware,
    RequestMetricsMiddleware,
)
from src.observability.metrics import MetricsErrorType, increment_error
from src.presentation.api import (
    ai_router,
    auth_router,
    chat_router,
    conversations_router,
    debug_router,
    embed_router,
    feedback_router,
    health_router,
    metrics_router,
    user_router,
)
from src.presentation.api.responses import error_response
from src.setup.ioc.container import create_container

# Setup logging
setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: container and Dishka are already set up before the app starts;
    start the in-process session / rate-limit sweep.
    Shutdown: stop the sweep, close the DI container (Airtable/HTTP clients, Redis).
    """
    logger.info("FastAPI application started (env=%s)", Config.APP_ENV)
    if not Config.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; session tokens cannot be issued")
    sweeper = await app.state.dishka_container.get(SweepInProcessStateHandler)
    app.state.sweep_task = asyncio.create_task(
        run_periodic_sweep(sweeper, Config.STATE_SWEEP_INTERVAL_SECONDS)
    )
    yield
    app.state.sweep_task.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.sweep_task
    await app.state.dishka_container.close()
    logger.info("FastAPI application shutdown. DI container closed.")


def _allowed_origins() -> list[str]:
    return [origin.strip() for origin in Config.ALLOWED_ORIGIN.split(",") if origin.strip()]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("[API ERROR %s] %s: %s", exc.status_code, exc.code, exc.message)
        return error_response(
            request,
            exc.status_code,
            exc.code,
            exc.message,
            exc.details,
            headers=exc.headers or None,
        )

    # Validation error handler - Pydantic errors become 400, not 422
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning("[VALIDATION ERROR] %s", errors)
        return error_response(
            request,
            400,
            "INVALID_REQUEST",
            "Request validation failed",
            [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors],
        )

    @app.exception_handler(EntityNotFoundError)
    async def not_found_handler(request: Request, exc: EntityNotFoundError):
        return error_response(request, 404, "NOT_FOUND", str(exc))

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError):
        logger.warning("[ACCESS DENIED] %s %s", request.url.path, exc)
        return error_response(request, 403, "FORBIDDEN", "Access denied")

    @app.exception_handler(DomainValidationError)
    async def domain_validation_handler(request: Request, exc: DomainValidationError):
        return error_response(request, 400, "VALIDATION_ERROR", str(exc))

    @app.exception_handler(ExternalServiceError)
    async def external_service_handler(request: Request, exc: ExternalServiceError):
        logger.error("[UPSTREAM ERROR] %s", exc)
        return error_response(
            request, 502, "SERVICE_UNAVAILABLE", f"{exc.service} is unavailable"
        )

    # HTTP exception handler - 404 for unknown routes, 405, etc.
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.info("[HTTP ERROR %s] %s", exc.status_code, exc.detail)
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return error_response(
            request, exc.status_code, code, str(exc.detail), headers=exc.headers
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("[GLOBAL ERROR] %s: %s", type(exc).__name__, exc)
        increment_error(MetricsErrorType.INTERNAL)
        return error_response(request, 500, "INTERNAL_ERROR", "Internal server error")


def create_fastapi_app(container: Optional[AsyncContainer] = None) -> FastAPI:
    """
    Application factory for creating FastAPI app.

    Args:
        container: DI container to use; defaults to create_container().
            Tests pass one built with override providers.

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="VADIY Chat API",
        description="Veteran assistant chat backend",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if Config.is_production() else "/docs",
        redoc_url=None,
    )

    # Setup Dishka BEFORE app starts (must add middleware before startup)
    setup_dishka(container or create_container(), app)

    # Added innermost first; CORS ends up outermost
    app.add_middleware(EmbedFrameMiddleware)
    app.add_middleware(RequestMetricsMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
        expose_headers=[
            "X-Correlation-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    register_exception_handlers(app)

    @app.get("/", tags=["health"])
    async def root():
        return {"message": "VADIY chat server is running."}

    # Register routers
    app.include_router(health_router)  # /health, /health/database, /health/ai
    app.include_router(auth_router)  # /auth/session, /auth/verify-user
    app.include_router(chat_router)  # POST /chat/send-message
    app.include_router(user_router)  # GET /user/tier
    app.include_router(conversations_router)
    app.include_router(feedback_router)
    app.include_router(ai_router)
    app.include_router(embed_router)  # GET /embed
    app.include_router(metrics_router)
    if Config.DEBUG:
        app.include_router(debug_router)

    return app


# Create the app instance
app = create_fastapi_app()
