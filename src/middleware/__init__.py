"""HTTP middleware shared by every route."""

from src.middleware.frame_headers import EmbedFrameMiddleware
from src.middleware.request_context import CorrelationIdMiddleware, RequestMetricsMiddleware

__all__ = ["CorrelationIdMiddleware", "EmbedFrameMiddleware", "RequestMetricsMiddleware"]
