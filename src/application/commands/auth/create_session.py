"""CreateSession Command - Issue an anonymous chat session token."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.application.common.errors import ApiError
from src.application.common.interfaces import Command, CommandHandler
from src.config.settings import Config
from src.observability.audit import AuditLogger
from src.utils.security import SecurityManager
from src.utils.sessions import SessionManager

logger = logging.getLogger(__name__)

RESOURCE = "auth/session"


@dataclass
class SessionResult:
    session_token: str
    session_id: str
    user_id: str
    expires_in: int


@dataclass(frozen=True)
class CreateSessionCommand(Command[SessionResult]):
    user_agent: Optional[str] = None
    timestamp: Optional[str] = None
    embedded: bool = False
    request: Any = None


class CreateSessionHandler(CommandHandler[SessionResult]):
    def __init__(self, security: SecurityManager, sessions: SessionManager):
        self.security = security
        self.sessions = sessions

    async def execute(self, command: CreateSessionCommand) -> SessionResult:
        user_agent = command.user_agent or "unknown"
        try:
            user_id = SecurityManager.generate_token(16)
            session_id = self.sessions.create_session(
                user_id, {"embedded": command.embedded, "isAnonymous": True}
            )
            claims = {
                "sessionId": session_id,
                "userId": user_id,
                "userAgent": user_agent,
                "timestamp": command.timestamp or datetime.now(timezone.utc).isoformat(),
                "embedded": command.embedded,
                "isAnonymous": True,
                "securityLevel": "standard",
            }
            token = self.security.create_jwt(
                claims, expires_in=timedelta(seconds=Config.SESSION_TTL_SECONDS)
            )
        except Exception as e:
            logger.error("[Auth] Session creation failed: %s", e)
            AuditLogger.log_security_event(
                "unknown",
                "session_creation_failed",
                RESOURCE,
                {"error": str(e)},
                "medium",
                command.request,
            )
            raise ApiError(500, "SESSION_CREATION_FAILED", "Failed to create session") from e

        AuditLogger.log_security_event(
            user_id,
            "session_created",
            RESOURCE,
            {"sessionId": session_id, "embedded": command.embedded, "userAgent": user_agent},
            "low",
            command.request,
        )
        return SessionResult(
            session_token=token,
            session_id=session_id,
            user_id=user_id,
            expires_in=Config.SESSION_TTL_SECONDS,
        )
