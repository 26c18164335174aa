"""Inbound channel payloads (email, Instagram DM) and conversation mappings."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChannelSource(str, Enum):
    EMAIL = "email"
    INSTAGRAM = "instagram"


class ConversationMapping(BaseModel):
    """Links an external thread or conversation to the ticket it created."""

    id: str
    ticket_id: str
    source: ChannelSource
    external_id: str
    external_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class InboundEmail(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: str
    thread_id: Optional[str] = None
    sender: str = Field(alias="from")
    subject: Optional[str] = None
    body: Optional[str] = None

    @property
    def conversation_key(self) -> str:
        """Replies share the thread id; a first message starts its own thread."""
        return self.thread_id or self.message_id


class InstagramDM(BaseModel):
    model_config = ConfigDict(extra="ignore")

    conversation_id: str
    sender_id: str
    username: Optional[str] = None
    text: str
    message_id: Optional[str] = None


class IngestionResult(BaseModel):
    ticket_id: str
    message_id: Optional[str] = None
    created_ticket: bool = False
