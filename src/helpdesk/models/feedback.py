"""AI response feedback models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FeedbackRating(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class AIFeedback(BaseModel):
    id: str
    ticket_id: str
    message_id: str
    rating: FeedbackRating
    comment: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime


class FeedbackDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ticket_id: str
    message_id: str
    rating: FeedbackRating
    comment: Optional[str] = None


class FeedbackUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rating: Optional[FeedbackRating] = None
    comment: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class FeedbackStats(BaseModel):
    """Aggregate over a trailing window; rates are whole percentages."""

    total: int = 0
    positive: int = 0
    negative: int = 0
    positive_rate: int = 0
    negative_rate: int = 0
    recent: List[AIFeedback] = Field(default_factory=list)
