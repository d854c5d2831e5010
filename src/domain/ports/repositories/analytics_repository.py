"""
Analytics Repository Port - Events, feedback and generated documents.
Implementation: src/infrastructure/persistence/airtable_analytics_repository.py
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class AnalyticsRepository(ABC):
    @abstractmethod
    async def track_event(
        self,
        user_id: str,
        session_id: str,
        event_type: str,
        event_data: dict[str, Any],
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None: ...

    @abstractmethod
    async def submit_feedback(
        self,
        user_id: str,
        message_id: Optional[str],
        rating: int,
        comment: str,
        category: str,
    ) -> None: ...

    @abstractmethod
    async def store_generated_document(
        self,
        user_id: str,
        document_type: str,
        content: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> str: ...
