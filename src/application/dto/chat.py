"""Chat DTOs for API request/response."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    """Body of POST /chat/send-message; validated by hand in the router."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: Any = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    session_token: Optional[str] = Field(default=None, alias="sessionToken")
    attachments: list[Any] = Field(default_factory=list)
    preferred_model: Optional[str] = Field(default=None, alias="preferredModel")


class MessageDTO(BaseModel):
    """DTO for message data returned to frontend."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    conversation_id: str = Field(alias="conversationId")
    role: str
    content: str
    timestamp: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)
    edited: bool = False
