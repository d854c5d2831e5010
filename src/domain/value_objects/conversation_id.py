"""
ConversationId Value Object - Identity of a conversation.

Stored conversations use a 32-char hex id. Chats that were never persisted
use a "temp_" prefixed id and are not written to the store.
"""

from dataclasses import dataclass

TEMP_PREFIX = "temp_"


@dataclass(frozen=True)
class ConversationId:
    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("Conversation ID cannot be empty")
        if len(self.value) > 128:
            raise ValueError(f"Conversation ID too long: {self.value[:20]}...")

    @classmethod
    def temporary(cls, token: str) -> "ConversationId":
        return cls(f"{TEMP_PREFIX}{token}")

    @property
    def is_temporary(self) -> bool:
        return self.value.startswith(TEMP_PREFIX)

    def __str__(self) -> str:
        return self.value
