"""
VerifyUser Command - Exchange a known email (plus optional platform token)
for a short-lived authenticated session.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.application.common.errors import ApiError
from src.application.common.interfaces import Command, CommandHandler
from src.config.settings import Config
from src.domain.entities.user import User
from src.domain.ports.repositories import UserRepository
from src.domain.value_objects.user_email import UserEmail
from src.observability.audit import AuditLogger, client_ip
from src.observability.metrics import LimitType, increment_usage_limit_hit
from src.utils.rate_limiter import RateLimiter, RateLimitResult
from src.utils.safety import InputValidator
from src.utils.security import SecurityManager, TokenVerificationError
from src.utils.sessions import SessionManager

logger = logging.getLogger(__name__)

RESOURCE = "auth/verify-user"


def _limit_metadata(result: RateLimitResult) -> dict[str, Any]:
    return {
        "limit": Config.AUTH_RATE_LIMIT,
        "remaining": result.remaining,
        "resetTime": datetime.fromtimestamp(result.reset_time / 1000, tz=timezone.utc).isoformat(),
    }


@dataclass
class VerifiedUser:
    user: User
    session_token: str
    session_id: str
    expires_at: datetime
    user_rate_limit: dict[str, Any]
    auth_rate_limit: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.public_view(),
            "session": {
                "token": self.session_token,
                "sessionId": self.session_id,
                "expiresAt": self.expires_at.isoformat(),
            },
            "rateLimit": self.user_rate_limit,
        }


@dataclass(frozen=True)
class VerifyUserCommand(Command[VerifiedUser]):
    email: Optional[str]
    platform_token: Optional[str] = None
    user_agent: Optional[str] = None
    request: Any = None


class VerifyUserHandler(CommandHandler[VerifiedUser]):
    def __init__(
        self,
        users: UserRepository,
        security: SecurityManager,
        rate_limiter: RateLimiter,
        sessions: SessionManager,
    ):
        self.users = users
        self.security = security
        self.rate_limiter = rate_limiter
        self.sessions = sessions

    async def execute(self, command: VerifyUserCommand) -> VerifiedUser:
        if not isinstance(command.email, str) or not InputValidator.is_valid_email(command.email):
            raise ApiError(400, "INVALID_EMAIL", "Valid email address is required")

        email = InputValidator.sanitize_input(command.email)
        ip = client_ip(command.request)

        attempt = self.rate_limiter.check_rate_limit(
            f"auth:{ip}", Config.AUTH_RATE_LIMIT, Config.AUTH_RATE_WINDOW_SECONDS * 1000
        )
        if not attempt.allowed:
            increment_usage_limit_hit(LimitType.AUTH, "unknown")
            AuditLogger.log_security_event(
                "unknown",
                "rate_limit_exceeded",
                RESOURCE,
                {"email": email, "ip": ip},
                "medium",
                command.request,
            )
            raise ApiError(
                429,
                "RATE_LIMIT_EXCEEDED",
                "Too many authentication attempts. Please try again later.",
                details={"rateLimit": _limit_metadata(attempt)},
            )

        if command.platform_token:
            try:
                self.security.verify_jwt(command.platform_token)
            except TokenVerificationError as e:
                AuditLogger.log_security_event(
                    "unknown",
                    "invalid_token",
                    RESOURCE,
                    {"email": email, "error": "Invalid platform token"},
                    "high",
                    command.request,
                )
                raise ApiError(401, "INVALID_TOKEN", "Invalid authentication token") from e

        user_id = "unknown"
        try:
            user = await self.users.get_by_email(UserEmail(email))
            if user is None:
                AuditLogger.log_security_event(
                    "unknown", "user_not_found", RESOURCE, {"email": email}, "low", command.request
                )
                raise ApiError(
                    404, "USER_NOT_FOUND", "User not found. Please ensure you have an account."
                )
            user_id = user.id

            if user.requires_enhanced_security and not command.platform_token:
                raise ApiError(
                    403,
                    "ENHANCED_SECURITY_REQUIRED",
                    "Enhanced security verification required",
                )

            ttl = timedelta(seconds=Config.AUTH_SESSION_TTL_SECONDS)
            session_id = self.sessions.create_session(
                user.id,
                {
                    "email": user.email,
                    "subscriptionStatus": user.subscription_status,
                    "securityLevel": user.security_level,
                },
            )
            token = self.security.create_jwt(
                {
                    "sessionId": session_id,
                    "userId": user.id,
                    "email": user.email,
                    "subscriptionStatus": user.subscription_status,
                },
                expires_in=ttl,
            )

            # Touching preferences bumps Last_Login and Updated_At
            await self.users.update_preferences(user.id, dict(user.preferences), user.id)

            AuditLogger.log_security_event(
                user.id,
                "user_authenticated",
                RESOURCE,
                {
                    "email": email,
                    "subscriptionStatus": user.subscription_status,
                    "securityLevel": user.security_level,
                },
                "low",
                command.request,
            )
            user_rate_limit = await self.users.check_rate_limit(user.id)
        except ApiError:
            raise
        except Exception as e:
            logger.error("[Auth] Authentication error: %s", e, exc_info=True)
            AuditLogger.log_security_event(
                user_id, "authentication_error", RESOURCE, {"error": str(e)}, "high", command.request
            )
            raise ApiError(
                500, "INTERNAL_ERROR", "An internal error occurred during authentication"
            ) from e

        return VerifiedUser(
            user=user,
            session_token=token,
            session_id=session_id,
            expires_at=datetime.now(timezone.utc) + ttl,
            user_rate_limit=user_rate_limit,
            auth_rate_limit=_limit_metadata(attempt),
        )
