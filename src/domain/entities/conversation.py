"""
Conversation Entity - A chat session between a veteran and the assistant.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.domain.value_objects.conversation_id import ConversationId


@dataclass
class Conversation:
    id: ConversationId
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    last_message_at: datetime
    is_encrypted: bool = False
    status: str = "active"
    tags: list[str] = field(default_factory=list)
    message_count: int = 0

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def record_message(self) -> None:
        now = datetime.now(timezone.utc)
        self.message_count += 1
        self.last_message_at = now
        self.updated_at = now

    @classmethod
    def create(
        cls, id: ConversationId, user_id: str, title: str, is_encrypted: bool = False
    ) -> Conversation:
        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            user_id=user_id,
            title=title,
            created_at=now,
            updated_at=now,
            last_message_at=now,
            is_encrypted=is_encrypted,
        )
