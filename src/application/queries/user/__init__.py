from src.application.queries.user.get_user_tier import (
    GetUserTierHandler,
    GetUserTierQuery,
    UserTierResult,
)

__all__ = ["GetUserTierHandler", "GetUserTierQuery", "UserTierResult"]
