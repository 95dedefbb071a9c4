from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WebhookResponse(BaseModel):
    """JSON reply for the Baileys bridge."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    response: str
    conversation_id: Optional[UUID] = Field(default=None, serialization_alias="conversationId")
    conversation_state: Optional[str] = Field(default=None, serialization_alias="conversationState")
    error: Optional[str] = None
