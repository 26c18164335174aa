"""
Webhook configuration, execution log and outbound event payloads.

Events form a tagged union on ``event_type`` so the side-effect queue can
round-trip them as JSON and the dispatcher can match subscriptions.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class WebhookEventType(str, Enum):
    TICKET_CREATED = "ticket_created"
    TICKET_UPDATED = "ticket_updated"
    STATUS_CHANGED = "status_changed"
    MESSAGE_SENT = "message_sent"


def _check_events(value: List[WebhookEventType]) -> List[WebhookEventType]:
    if not value:
        raise ValueError("at least one event must be selected")
    deduped: List[WebhookEventType] = []
    for event in value:
        if event not in deduped:
            deduped.append(event)
    return deduped


class WebhookConfig(BaseModel):
    """A subscriber registration."""

    id: str
    name: str
    url: str
    events: List[WebhookEventType]
    active: bool = True
    secret: Optional[str] = None
    created_at: datetime

    def subscribes_to(self, event_type: WebhookEventType) -> bool:
        return self.active and event_type in self.events


class WebhookDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    url: str
    events: List[WebhookEventType]
    active: bool = True
    secret: Optional[str] = None

    @field_validator("name", "url")
    @classmethod
    def validate_required(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("name and url must be provided")
        return cleaned

    @field_validator("events")
    @classmethod
    def validate_events(cls, value: List[WebhookEventType]) -> List[WebhookEventType]:
        return _check_events(value)


class WebhookUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    url: Optional[str] = None
    events: Optional[List[WebhookEventType]] = None
    active: Optional[bool] = None
    secret: Optional[str] = None

    @field_validator("events")
    @classmethod
    def validate_events(
        cls, value: Optional[List[WebhookEventType]]
    ) -> Optional[List[WebhookEventType]]:
        if value is None:
            return None
        return _check_events(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class WebhookExecutionLog(BaseModel):
    """Append-only record of one delivery attempt."""

    id: str
    webhook_id: str
    event_type: WebhookEventType
    ticket_id: str
    status_code: int = 0
    success: bool = False
    response_body: Optional[str] = None
    error_message: Optional[str] = None
    executed_at: datetime


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _EventBase(BaseModel):
    ticket_id: str
    timestamp: str = Field(default_factory=_now_iso)

    def to_payload(self) -> Dict[str, Any]:
        """Wire body sent to subscribers."""
        return self.model_dump(mode="json", exclude_none=True)


class TicketCreatedEvent(_EventBase):
    event_type: Literal["ticket_created"] = "ticket_created"
    ticket_data: Dict[str, Any]


class TicketUpdatedEvent(_EventBase):
    event_type: Literal["ticket_updated"] = "ticket_updated"
    ticket_data: Dict[str, Any]


class StatusChangedEvent(_EventBase):
    event_type: Literal["status_changed"] = "status_changed"
    old_status: str
    new_status: str
    ticket_data: Dict[str, Any]


class MessageSentEvent(_EventBase):
    event_type: Literal["message_sent"] = "message_sent"
    message: str
    ticket_data: Dict[str, Any]


WebhookEvent = Annotated[
    Union[TicketCreatedEvent, TicketUpdatedEvent, StatusChangedEvent, MessageSentEvent],
    Field(discriminator="event_type"),
]

webhook_event_adapter: TypeAdapter = TypeAdapter(WebhookEvent)


class WebhookEvents:
    """Constructors for the four event kinds."""

    @staticmethod
    def ticket_created(ticket_id: str, ticket_data: Dict[str, Any]) -> TicketCreatedEvent:
        return TicketCreatedEvent(ticket_id=ticket_id, ticket_data=ticket_data)

    @staticmethod
    def ticket_updated(ticket_id: str, ticket_data: Dict[str, Any]) -> TicketUpdatedEvent:
        return TicketUpdatedEvent(ticket_id=ticket_id, ticket_data=ticket_data)

    @staticmethod
    def status_changed(
        ticket_id: str, old_status: str, new_status: str, ticket_data: Dict[str, Any]
    ) -> StatusChangedEvent:
        return StatusChangedEvent(
            ticket_id=ticket_id,
            old_status=old_status,
            new_status=new_status,
            ticket_data=ticket_data,
        )

    @staticmethod
    def message_sent(ticket_id: str, message: str, is_ai_message: bool) -> MessageSentEvent:
        return MessageSentEvent(
            ticket_id=ticket_id,
            message=message,
            ticket_data={"is_ai_message": is_ai_message},
        )
