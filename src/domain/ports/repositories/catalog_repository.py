"""
Catalog Repository Port - Opportunities, resources and personalised matches.
Implementation: src/infrastructure/persistence/airtable_catalog_repository.py
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from src.domain.entities.opportunity import Opportunity, Resource, UserMatches


class CatalogRepository(ABC):
    @abstractmethod
    async def get_opportunities(
        self,
        user_id: str,
        filters: Optional[dict[str, Any]] = None,
        limit: int = 20,
    ) -> list[Opportunity]: ...

    @abstractmethod
    async def get_matched_opportunities(self, user_id: str) -> list[Opportunity]: ...

    @abstractmethod
    async def get_matched_resources(self, user_id: str) -> list[Resource]: ...

    @abstractmethod
    async def search_opportunities(
        self, query: str, user_id: str, limit: int = 10
    ) -> list[Opportunity]: ...

    @abstractmethod
    async def search_resources(
        self, query: str, user_id: str, limit: int = 10
    ) -> list[Resource]: ...

    @abstractmethod
    async def get_user_matches(self, user_id: str) -> Optional[UserMatches]: ...
