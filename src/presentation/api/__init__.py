"""
API Routers - FastAPI endpoint definitions.
"""

from src.presentation.api.ai import router as ai_router
from src.presentation.api.auth import router as auth_router
from src.presentation.api.chat import router as chat_router
from src.presentation.api.conversations import router as conversations_router
from src.presentation.api.debug import router as debug_router
from src.presentation.api.embed import router as embed_router
from src.presentation.api.feedback import router as feedback_router
from src.presentation.api.health import router as health_router
from src.presentation.api.metrics import router as metrics_router
from src.presentation.api.user import router as user_router

__all__ = [
    "ai_router",
    "auth_router",
    "chat_router",
    "conversations_router",
    "debug_router",
    "embed_router",
    "feedback_router",
    "health_router",
    "metrics_router",
    "user_router",
]
