"""Canned replies staff insert into ticket conversations by shortcut."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

_SHORTCUT_RE = re.compile(r"^/[\w-]{1,40}$", re.UNICODE)


def normalise_shortcut(value: str) -> str:
    """``"Senha"``, ``"/senha"`` and ``" /SENHA "`` all become ``"/senha"``."""
    cleaned = (value or "").strip().lower()
    if cleaned and not cleaned.startswith("/"):
        cleaned = "/" + cleaned
    return cleaned


def _check_shortcut(value: str) -> str:
    cleaned = normalise_shortcut(value)
    if not _SHORTCUT_RE.match(cleaned):
        raise ValueError("shortcut must be a single word such as /senha")
    return cleaned


class QuickReply(BaseModel):
    id: str
    title: str
    shortcut: str
    content: str
    category: str
    active: bool = True
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class QuickReplyDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    shortcut: str
    content: str
    category: str = "Geral"
    active: bool = True

    @field_validator("title", "content")
    @classmethod
    def validate_required(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("title and content must be provided")
        return cleaned

    @field_validator("shortcut")
    @classmethod
    def validate_shortcut(cls, value: str) -> str:
        return _check_shortcut(value)

    @field_validator("category")
    @classmethod
    def default_blank_category(cls, value: str) -> str:
        return (value or "").strip() or "Geral"


class QuickReplyUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    shortcut: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("shortcut")
    @classmethod
    def validate_shortcut(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _check_shortcut(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
