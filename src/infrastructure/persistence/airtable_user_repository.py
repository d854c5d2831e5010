"""
Airtable User Repository Implementation.

- Implements UserRepository against the "User Profiles" table (or whichever
  candidate name the registry resolved)
- Record -> entity mapping lives in infrastructure/airtable/mappers.py
- Reads by a requester are written to the audit trail
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from src.config.settings import Config
from src.domain.entities.user import User, UserProfile
from src.domain.exceptions import ExternalServiceError
from src.domain.ports.repositories import UserRepository
from src.domain.value_objects.user_email import UserEmail
from src.infrastructure.airtable import (
    AirtableError,
    AirtableTables,
    field_equals,
    safe_table_operation,
)
from src.infrastructure.airtable.mappers import map_user_profile, map_user_record
from src.infrastructure.airtable.tables import USERS
from src.observability.audit import AuditLogger
from src.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Profile lookups also try these literal names, in order
PROFILE_TABLE_FALLBACKS = ("Users", "users", "User", "user")


class AirtableUserRepository(UserRepository):
    def __init__(self, tables: AirtableTables, rate_limiter: RateLimiter):
        self._tables = tables
        self._rate_limiter = rate_limiter

    async def get_by_email(
        self, email: UserEmail, requester_id: Optional[str] = None
    ) -> Optional[User]:
        async def operation():
            records = await self._tables.select(
                USERS, filter_by_formula=field_equals("Email", email.value), max_records=1
            )
            if not records:
                return None
            user = map_user_record(records[0])
            if requester_id:
                AuditLogger.log_data_access(requester_id, "user", user.id, "read")
            return user

        return await safe_table_operation(operation, "User Profiles", "get_by_email")

    async def get_by_id(
        self, user_id: str, requester_id: Optional[str] = None
    ) -> Optional[User]:
        async def operation():
            user = map_user_record(await self._tables.find(USERS, user_id))
            if requester_id:
                AuditLogger.log_data_access(requester_id, "user", user_id, "read")
            return user

        return await safe_table_operation(operation, "User Profiles", "get_by_id")

    async def update_preferences(
        self, user_id: str, preferences: dict[str, Any], requester_id: str
    ) -> None:
        async def operation():
            await self._tables.update(
                USERS,
                user_id,
                {
                    "Preferences": json.dumps(preferences),
                    "Updated_At": datetime.now(timezone.utc).isoformat(),
                },
            )
            AuditLogger.log_data_access(requester_id, "user_preferences", user_id, "write")

        await safe_table_operation(operation, "User Profiles", "update_preferences")

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Look the user up by the `{User}` field across the known user tables."""
        candidates = []
        resolved = await self._tables.resolve(USERS)
        if resolved:
            candidates.append(resolved)
        candidates.extend(n for n in PROFILE_TABLE_FALLBACKS if n not in candidates)

        for table_name in candidates:
            try:
                records = await self._tables.client.select(
                    table_name,
                    filter_by_formula=field_equals("User", user_id),
                    max_records=1,
                )
            except AirtableError as e:
                logger.debug("[Users] %s table not accessible: %s", table_name, e)
                continue
            if records:
                logger.info("[Users] Found user profile in %s", table_name)
                return map_user_profile(records[0])

        logger.info("[Users] No profile found for %s", user_id)
        return None

    async def check_rate_limit(self, user_id: str) -> dict[str, Any]:
        try:
            user = await self.get_by_id(user_id)
        except ExternalServiceError:
            logger.error("[Users] Rate limit lookup failed for %s", user_id, exc_info=True)
            return {"allowed": False, "remaining": 0}
        if user is None:
            logger.warning("[Users] Rate limit check for unknown user %s", user_id)
            return {"allowed": False, "remaining": 0}

        limit = Config.RATE_LIMIT_FREE_USER if user.is_free else Config.RATE_LIMIT_PAID_USER
        result = self._rate_limiter.check_rate_limit(
            f"user:{user_id}", limit, Config.RATE_LIMIT_WINDOW
        )
        return {"allowed": result.allowed, "remaining": result.remaining}
