"""Conversation message models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class AuthorKind(str, Enum):
    CUSTOMER = "customer"
    STAFF = "staff"
    AI = "ai"


class Message(BaseModel):
    """One utterance inside a ticket conversation. Immutable once stored."""

    id: str
    ticket_id: str
    user_id: Optional[str] = None
    content: str
    is_ai: bool = False
    created_at: datetime

    @property
    def author_kind(self) -> AuthorKind:
        """No author and not AI means the anonymous end customer wrote it."""
        if self.is_ai:
            return AuthorKind.AI
        if self.user_id:
            return AuthorKind.STAFF
        return AuthorKind.CUSTOMER


class MessageDraft(BaseModel):
    """Inbound payload for POST /tickets/{id}/messages."""

    content: str
    is_ai: bool = False
    author_name: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("content must be provided")
        return cleaned
