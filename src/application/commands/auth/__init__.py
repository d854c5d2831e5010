"""Session and user verification commands."""

from src.application.commands.auth.create_session import (
    CreateSessionCommand,
    CreateSessionHandler,
    SessionResult,
)
from src.application.commands.auth.verify_user import (
    VerifiedUser,
    VerifyUserCommand,
    VerifyUserHandler,
)

__all__ = [
    "CreateSessionCommand",
    "CreateSessionHandler",
    "SessionResult",
    "VerifiedUser",
    "VerifyUserCommand",
    "VerifyUserHandler",
]
