"""Conversation DTOs for API request/response."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ConversationDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    last_message_at: datetime = Field(alias="lastMessageAt")
    message_count: int = Field(default=0, alias="messageCount")
    status: str = "active"
