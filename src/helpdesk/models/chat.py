"""AI chat widget payloads."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from helpdesk.models.ticket import TicketPriority


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    MODEL = "model"


class ChatTurn(BaseModel):
    """Role-tagged chat turn as sent by the widget."""

    role: ChatRole
    content: str


class ChatRequest(BaseModel):
    """POST /chat body."""

    messages: List[ChatTurn]
    ticket_id: Optional[str] = None
    product: Optional[str] = None

    @field_validator("messages")
    @classmethod
    def validate_messages(cls, value: List[ChatTurn]) -> List[ChatTurn]:
        if not any(turn.role == ChatRole.USER and turn.content.strip() for turn in value):
            raise ValueError("at least one user message is required")
        return value


class ChatReply(BaseModel):
    """Text shown to the end user plus what grounded it."""

    reply: str
    knowledge_ids: List[str] = Field(default_factory=list)
    message_id: Optional[str] = None


class TicketAnalysis(BaseModel):
    """Structured triage suggestion for a new ticket."""

    category: str = "Outro"
    priority: TicketPriority = TicketPriority.MEDIUM
    suggested_response: str = ""


class AnalyzeRequest(BaseModel):
    title: str
    description: str
