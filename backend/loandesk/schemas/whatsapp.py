from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from loandesk.models.models import SESSION_ID_MAX_LENGTH


class SendTextRequest(BaseModel):
    """Required fields are checked by the route so a missing one answers 400, not 422."""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    message: Optional[str] = None


class SendDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    document_url: Optional[str] = Field(default=None, alias="documentUrl")
    caption: Optional[str] = None
    filename: Optional[str] = None


class SendResult(BaseModel):
    success: bool = True
    result: Dict[str, Any]


class SaveMessageRequest(BaseModel):
    session_id: Optional[str] = Field(default=None, max_length=SESSION_ID_MAX_LENGTH)
    message: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None


class ChatMessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: str
    message: Dict[str, Any]
    timestamp: datetime


class SaveMessageResult(BaseModel):
    success: bool = True
    data: List[ChatMessageOut]


class WebhookResult(BaseModel):
    success: bool = True
    stored: int


class ConversationOut(BaseModel):
    session_id: str
    messages: List[ChatMessageOut]
