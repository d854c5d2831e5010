"""
REPOSITORY PORTS - Data persistence interfaces

Each repository port:
- Is an abstract base class (ABC)
- Defines methods the domain needs
- Does NOT specify implementation (Airtable, SQL, etc.)

Infrastructure layer provides implementations.
"""

from src.domain.ports.repositories.conversation_repository import ConversationRepository
from src.domain.ports.repositories.message_repository import MessageRepository
from src.domain.ports.repositories.user_repository import UserRepository
from src.domain.ports.repositories.catalog_repository import CatalogRepository
from src.domain.ports.repositories.analytics_repository import AnalyticsRepository

__all__ = [
    "ConversationRepository",
    "MessageRepository",
    "UserRepository",
    "CatalogRepository",
    "AnalyticsRepository",
]
