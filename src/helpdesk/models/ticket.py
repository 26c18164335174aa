"""Ticket models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from helpdesk.utils.validators import is_valid_cpf, is_valid_email, is_valid_phone


class TicketStatus(str, Enum):
    """Lifecycle states of a support ticket."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    """Priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


STATUS_LABELS = {
    TicketStatus.OPEN: "Aberto",
    TicketStatus.IN_PROGRESS: "Em Andamento",
    TicketStatus.RESOLVED: "Resolvido",
    TicketStatus.CLOSED: "Fechado",
}


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not is_valid_email(value):
        raise ValueError("customer_email is not a valid email address")
    return value


def _check_cpf(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    if not is_valid_cpf(value):
        raise ValueError("customer_cpf is not a valid CPF")
    return value.strip()


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    if not is_valid_phone(value):
        raise ValueError("customer_phone is not a valid phone number")
    return value.strip()


class Ticket(BaseModel):
    """A persisted support case."""

    id: str
    user_id: Optional[str] = None
    title: str
    description: str
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM
    category: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_cpf: Optional[str] = None
    customer_phone: Optional[str] = None
    product: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None
    version: int = Field(default=1, ge=1)

    @property
    def short_ref(self) -> str:
        """Human-facing reference used in emails and alerts."""
        return self.id[:8].upper()


class TicketDraft(BaseModel):
    """Inbound payload for ticket creation (public form or channel adapter)."""

    model_config = ConfigDict(extra="ignore")

    title: str
    description: str
    category: str = "Suporte"
    priority: TicketPriority = TicketPriority.MEDIUM
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_cpf: Optional[str] = None
    customer_phone: Optional[str] = None
    product: Optional[str] = None

    @field_validator("title", "description")
    @classmethod
    def validate_required(cls, value: str) -> str:
        """Reject blank strings before anything is written."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("title and description must be provided")
        return cleaned

    @field_validator("category")
    @classmethod
    def default_blank_category(cls, value: str) -> str:
        return (value or "").strip() or "Suporte"

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)

    @field_validator("customer_cpf")
    @classmethod
    def validate_cpf(cls, value: Optional[str]) -> Optional[str]:
        return _check_cpf(value)

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class TicketUpdate(BaseModel):
    """Sparse set of fields a staff member may change on a ticket."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    category: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution: Optional[str] = None
    resolved_at: Optional[datetime] = None
    product: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_cpf: Optional[str] = None
    customer_phone: Optional[str] = None

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)

    @field_validator("customer_cpf")
    @classmethod
    def validate_cpf(cls, value: Optional[str]) -> Optional[str]:
        return _check_cpf(value)

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)

    def changes(self) -> dict:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class TicketStats(BaseModel):
    """Ticket counts per status."""

    total: int = 0
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
    closed: int = 0
