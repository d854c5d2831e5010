"""
DTOs - Data Transfer Objects

DTOs for transferring data between layers:
- chat.py → SendMessageRequest, MessageDTO
- conversation.py → ConversationDTO

Note: These are different from domain entities.
DTOs are for API input/output, entities are for business logic.
"""

from src.application.dto.chat import MessageDTO, SendMessageRequest
from src.application.dto.conversation import ConversationDTO

__all__ = [
    "MessageDTO",
    "SendMessageRequest",
    "ConversationDTO",
]
