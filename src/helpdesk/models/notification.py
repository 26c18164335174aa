"""Staff-facing alert and change-feed models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AlertKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Alert(BaseModel):
    """A single in-app notification. Alerts are replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: AlertKind
    title: str
    message: str
    read: bool = False
    created_at: datetime
    ticket_id: Optional[str] = None
    link: Optional[str] = None


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """Row-level change delivered by the change feed."""

    model_config = ConfigDict(frozen=True)

    table: str
    event_type: ChangeType
    new: Dict[str, Any] = Field(default_factory=dict)
    old: Dict[str, Any] = Field(default_factory=dict)
    commit_timestamp: Optional[datetime] = None


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    RECONNECTED = "reconnected"
    DISCONNECTED = "disconnected"
