"""
Message Entity - A single message in a conversation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from src.domain.value_objects.conversation_id import ConversationId

VALID_ROLES = ("user", "assistant", "system")


@dataclass
class Message:
    id: str
    conversation_id: ConversationId
    role: str
    content: str
    timestamp: datetime
    encrypted_content: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    attachments: list[Any] = field(default_factory=list)
    edited: bool = False
    edited_at: Optional[datetime] = None

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(f"Invalid role: {self.role}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "conversationId": self.conversation_id.value,
            "role": self.role,
            "content": self.content,
            "metadata": self.metadata,
            "attachments": self.attachments,
            "timestamp": self.timestamp.isoformat(),
            "edited": self.edited,
        }
