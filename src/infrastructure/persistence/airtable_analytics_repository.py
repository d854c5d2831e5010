"""
Airtable Analytics Repository Implementation.

Analytics events, user feedback and AI-generated documents. Free text is
masked (feedback) or redacted (documents) before it is stored.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from src.domain.ports.repositories import AnalyticsRepository
from src.infrastructure.airtable import AirtableTables, safe_table_operation
from src.infrastructure.airtable.tables import CHAT_ANALYTICS, DOCUMENTS, FEEDBACK
from src.utils.pii import PIIProtector
from src.utils.security import SecurityManager

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AirtableAnalyticsRepository(AnalyticsRepository):
    def __init__(self, tables: AirtableTables, enabled: bool = False):
        self._tables = tables
        self._enabled = enabled

    async def track_event(
        self,
        user_id: str,
        session_id: str,
        event_type: str,
        event_data: dict[str, Any],
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        if not self._enabled:
            return

        async def operation():
            await self._tables.create(
                CHAT_ANALYTICS,
                {
                    "Event_ID": SecurityManager.generate_token(16),
                    "User_ID": user_id,
                    "Session_ID": session_id,
                    "Event_Type": event_type,
                    "Event_Data": json.dumps(event_data, default=str),
                    "Timestamp": _now(),
                    "User_Agent": user_agent or "unknown",
                    "IP_Address": SecurityManager.hash(ip_address) if ip_address else "unknown",
                },
            )

        await safe_table_operation(operation, "Chat_Analytics", "track_event")

    async def submit_feedback(
        self,
        user_id: str,
        message_id: Optional[str],
        rating: int,
        comment: str,
        category: str,
    ) -> None:
        async def operation():
            await self._tables.create(
                FEEDBACK,
                {
                    "Feedback_ID": SecurityManager.generate_token(16),
                    "User_ID": user_id,
                    "Message_ID": message_id,
                    "Rating": rating,
                    "Comment": PIIProtector.mask_pii(comment),
                    "Category": category,
                    "Timestamp": _now(),
                },
            )

        await safe_table_operation(operation, "User_Feedback", "submit_feedback")

    async def store_generated_document(
        self,
        user_id: str,
        document_type: str,
        content: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        document_id = SecurityManager.generate_token(16)

        async def operation():
            await self._tables.create(
                DOCUMENTS,
                {
                    "Document_ID": document_id,
                    "User_ID": user_id,
                    "Document_Type": document_type,
                    "Content": PIIProtector.redact_pii(content),
                    "Metadata": json.dumps(metadata or {}, default=str),
                    "Created_At": _now(),
                    "Status": "generated",
                },
            )

        await safe_table_operation(operation, "Generated_Documents", "store_generated_document")
        return document_id
