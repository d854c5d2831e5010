"""
ENTITIES - Business objects with identity

Each entity:
- Has a unique identifier
- Has behavior (methods)
- Can change state over time
- Pure Python dataclasses (no ORM, no Pydantic)
"""

from src.domain.entities.conversation import Conversation
from src.domain.entities.message import Message
from src.domain.entities.user import User, UserProfile, ServiceRecord
from src.domain.entities.opportunity import (
    Opportunity,
    Resource,
    UserMatch,
    UserMatches,
)

__all__ = [
    "Conversation",
    "Message",
    "User",
    "UserProfile",
    "ServiceRecord",
    "Opportunity",
    "Resource",
    "UserMatch",
    "UserMatches",
]
