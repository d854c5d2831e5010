"""
User Repository Port - Interface for veteran profile lookups.
Implementation: src/infrastructure/persistence/airtable_user_repository.py
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from src.domain.entities.user import User, UserProfile
from src.domain.value_objects.user_email import UserEmail


class UserRepository(ABC):
    @abstractmethod
    async def get_by_id(
        self, user_id: str, requester_id: Optional[str] = None
    ) -> Optional[User]: ...

    @abstractmethod
    async def get_by_email(
        self, email: UserEmail, requester_id: Optional[str] = None
    ) -> Optional[User]: ...

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    @abstractmethod
    async def update_preferences(
        self, user_id: str, preferences: dict[str, Any], requester_id: str
    ) -> None: ...

    @abstractmethod
    async def check_rate_limit(self, user_id: str) -> dict[str, Any]:
        """Return {"allowed": bool, "remaining": int} for the user's plan."""
        ...
