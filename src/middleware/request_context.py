import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from src.config.logging_config import correlation_id_var
from src.observability.metrics import observe_request_latency

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to extract and set correlation ID from request headers."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID", "NO Correlation ID")

        # Set in contextvars (propagates to async tasks and logging)
        token = correlation_id_var.set(correlation_id)
        request.state.started_at = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Record request latency labelled by the matched route template."""

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            path = getattr(route, "path", None) or "unmatched"
            observe_request_latency(
                request.method, path, status_code, time.monotonic() - start
            )
