"""
Session Dependency for FastAPI.

Chat sessions are HS256 JWTs issued by POST /auth/session or
POST /auth/verify-user. Routes that need a caller identity declare
`session: SessionUser = Depends(get_session_user)`.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.application.common.errors import ApiError
from src.observability.audit import AuditLogger
from src.utils.security import SecurityManager, TokenVerificationError


@dataclass
class SessionUser:
    user_id: str
    session_id: str = ""
    is_anonymous: bool = False
    claims: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "SessionUser":
        user_id = claims.get("userId")
        if not user_id:
            raise TokenVerificationError("Session token has no userId")
        return cls(
            user_id=str(user_id),
            session_id=str(claims.get("sessionId", "")),
            is_anonymous=bool(claims.get("isAnonymous", False)),
            claims=claims,
        )


security = HTTPBearer(auto_error=False)


def verify_session_token(
    token: str, resource: str, request: Optional[Request] = None
) -> SessionUser:
    """Decode a session token or raise 401 INVALID_SESSION (audited)."""
    try:
        return SessionUser.from_claims(SecurityManager().verify_jwt(token))
    except TokenVerificationError as e:
        AuditLogger.log_security_event(
            "unknown",
            "invalid_session_token",
            resource,
            {"error": "Invalid session token"},
            "medium",
            request,
        )
        raise ApiError(401, "INVALID_SESSION", "Invalid or expired session") from e


async def get_session_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionUser:
    if credentials is None or not credentials.credentials:
        raise ApiError(401, "UNAUTHORIZED", "Missing or invalid authorization header")
    return verify_session_token(credentials.credentials, request.url.path, request)
