"""Knowledge base models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalise_keywords(value: Optional[List[str]]) -> List[str]:
    seen: List[str] = []
    for keyword in value or []:
        cleaned = (keyword or "").strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class KnowledgeEntry(BaseModel):
    """Curated article consulted by the AI responder."""

    id: str
    title: str
    category: str
    content: str
    keywords: List[str] = Field(default_factory=list)
    product: Optional[str] = None
    active: bool = True
    created_at: datetime
    updated_at: datetime


class KnowledgeDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    category: str
    content: str
    keywords: List[str] = Field(default_factory=list)
    product: Optional[str] = None
    active: bool = True

    @field_validator("title", "category", "content")
    @classmethod
    def validate_required(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("title, category and content must be provided")
        return cleaned

    @field_validator("keywords")
    @classmethod
    def normalise_keywords(cls, value: List[str]) -> List[str]:
        return _normalise_keywords(value)


class KnowledgeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None
    keywords: Optional[List[str]] = None
    product: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("keywords")
    @classmethod
    def normalise_keywords(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return _normalise_keywords(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
