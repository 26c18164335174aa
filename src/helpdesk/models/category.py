"""Managed ticket categories offered on the new-ticket form."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    active: bool = True
    order_index: int = 0
    created_at: datetime
    updated_at: datetime


class CategoryDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    active: bool = True
    # Appended after the last category when omitted.
    order_index: Optional[int] = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("name must be provided")
        return cleaned


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    active: Optional[bool] = None
    order_index: Optional[int] = Field(default=None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class CategoryOrder(BaseModel):
    """Body of the reorder request: ids in their new display order."""

    model_config = ConfigDict(extra="forbid")

    category_ids: List[str]

    @field_validator("category_ids")
    @classmethod
    def validate_unique(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("category_ids must not repeat")
        return value
