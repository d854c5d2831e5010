"""
Persistence Layer - Airtable implementations of the repository ports.
"""

from src.infrastructure.persistence.airtable_user_repository import (
    AirtableUserRepository,
)
from src.infrastructure.persistence.airtable_conversation_repository import (
    AirtableConversationRepository,
)
from src.infrastructure.persistence.airtable_message_repository import (
    AirtableMessageRepository,
)
from src.infrastructure.persistence.airtable_catalog_repository import (
    AirtableCatalogRepository,
)
from src.infrastructure.persistence.airtable_analytics_repository import (
    AirtableAnalyticsRepository,
)

__all__ = [
    "AirtableUserRepository",
    "AirtableConversationRepository",
    "AirtableMessageRepository",
    "AirtableCatalogRepository",
    "AirtableAnalyticsRepository",
]
