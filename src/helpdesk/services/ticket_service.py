"""
Ticket lifecycle.

Updates use optimistic concurrency: the stored ``version`` is read, checked
against the caller's expectation and then used as the condition of a single
compare-and-swap write that also bumps it. Webhooks and emails are published
as side-effect jobs after the write and never affect the returned result.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional

from helpdesk.models.ticket import (
    Ticket,
    TicketDraft,
    TicketStats,
    TicketStatus,
    TicketUpdate,
)
from helpdesk.models.webhook import WebhookEvents
from helpdesk.repositories.ticket_repo import TicketRepository
from helpdesk.services.event_queue import EmailJob, EventPublisher, WebhookJob, publish_quietly
from helpdesk.utils.error_handling import ConflictError, NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

_ALL_STATUSES: FrozenSet[TicketStatus] = frozenset(TicketStatus)

# Every status reaches every other one.
PERMISSIVE_TRANSITIONS: Dict[TicketStatus, FrozenSet[TicketStatus]] = {
    status: _ALL_STATUSES - {status} for status in TicketStatus
}

# A closed ticket may only be reopened.
RESTRICTED_TRANSITIONS: Dict[TicketStatus, FrozenSet[TicketStatus]] = {
    TicketStatus.OPEN: frozenset(
        {TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED, TicketStatus.CLOSED}
    ),
    TicketStatus.IN_PROGRESS: frozenset(
        {TicketStatus.OPEN, TicketStatus.RESOLVED, TicketStatus.CLOSED}
    ),
    TicketStatus.RESOLVED: frozenset(
        {TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.CLOSED}
    ),
    TicketStatus.CLOSED: frozenset({TicketStatus.OPEN}),
}

# Columns that may be sent as null in an update.
NULLABLE_FIELDS = frozenset(
    {
        "assigned_to",
        "resolution",
        "product",
        "customer_name",
        "customer_email",
        "customer_cpf",
        "customer_phone",
    }
)


class TransitionPolicy:
    """Explicit table of allowed status moves."""

    def __init__(self, table: Mapping[TicketStatus, FrozenSet[TicketStatus]]):
        self.table = dict(table)

    @classmethod
    def permissive(cls) -> "TransitionPolicy":
        return cls(PERMISSIVE_TRANSITIONS)

    @classmethod
    def restricted(cls) -> "TransitionPolicy":
        return cls(RESTRICTED_TRANSITIONS)

    def allows(self, old: TicketStatus, new: TicketStatus) -> bool:
        return old == new or new in self.table.get(old, frozenset())

    def check(self, old: TicketStatus, new: TicketStatus) -> None:
        if not self.allows(old, new):
            raise ValidationError(f"Status transition {old.value} -> {new.value} is not allowed")


def _column_values(changes: Dict) -> Dict:
    return {key: (value.value if isinstance(value, Enum) else value) for key, value in changes.items()}


class TicketService:
    """Create, read, update and delete tickets."""

    def __init__(
        self,
        repository: TicketRepository,
        publisher: EventPublisher,
        policy: Optional[TransitionPolicy] = None,
    ):
        self.repository = repository
        self.publisher = publisher
        self.policy = policy or TransitionPolicy.permissive()

    def create(self, draft: TicketDraft, creator_id: Optional[str] = None) -> Ticket:
        ticket = self.repository.create(draft, user_id=creator_id)
        self.announce_created(ticket)
        return ticket

    def announce_created(self, ticket: Ticket) -> None:
        """Publish ``ticket_created`` for a ticket that is already committed."""
        logger.info("Ticket created", extra={"ticket_id": ticket.id})
        publish_quietly(
            self.publisher,
            WebhookJob(event=WebhookEvents.ticket_created(ticket.id, ticket.model_dump(mode="json"))),
        )

    def get(self, ticket_id: str) -> Ticket:
        ticket = self.repository.get(ticket_id)
        if ticket is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    def list(
        self,
        status: Optional[TicketStatus] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Ticket]:
        return self.repository.list(
            status=status.value if status else None, user_id=user_id, limit=limit, offset=offset
        )

    def stats(self, user_id: Optional[str] = None) -> TicketStats:
        return self.repository.stats(user_id=user_id)

    def update(
        self, ticket_id: str, update: TicketUpdate, expected_version: Optional[int] = None
    ) -> Ticket:
        """
        Apply a partial update.

        Raises NotFoundError when the ticket is missing, ConflictError when
        ``expected_version`` is stale or a concurrent writer wins the
        compare-and-swap, and ValidationError for an unusable change set.
        """
        current = self.get(ticket_id)
        if expected_version is not None and expected_version != current.version:
            raise ConflictError(current_version=current.version)

        changes = update.changes()
        if not changes:
            raise ValidationError("No fields to update")
        for field, value in changes.items():
            if value is None and field not in NULLABLE_FIELDS:
                raise ValidationError(f"{field} cannot be null")
        for field in ("title", "description", "category"):
            if field in changes and not changes[field].strip():
                raise ValidationError(f"{field} cannot be blank")

        new_status = changes.get("status", current.status)
        self.policy.check(current.status, new_status)

        if "resolved_at" in changes:
            if new_status != TicketStatus.RESOLVED and current.resolved_at is None:
                raise ValidationError("resolved_at can only be set on a resolved ticket")
        elif new_status == TicketStatus.RESOLVED and current.resolved_at is None:
            changes["resolved_at"] = datetime.now(timezone.utc)

        stored = self.repository.update_if_version(
            ticket_id, current.version, _column_values(changes)
        )
        if stored is None:
            latest = self.repository.get(ticket_id)
            if latest is None:
                raise NotFoundError(f"Ticket {ticket_id} not found")
            raise ConflictError(current_version=latest.version)

        logger.info(
            "Ticket updated",
            extra={"ticket_id": stored.id, "version": stored.version, "fields": sorted(changes)},
        )
        self._after_update(current, stored)
        return stored

    def _after_update(self, before: Ticket, after: Ticket) -> None:
        snapshot = after.model_dump(mode="json")
        publish_quietly(
            self.publisher, WebhookJob(event=WebhookEvents.ticket_updated(after.id, snapshot))
        )
        if before.status == after.status:
            return

        publish_quietly(
            self.publisher,
            WebhookJob(
                event=WebhookEvents.status_changed(
                    after.id, before.status.value, after.status.value, snapshot
                )
            ),
        )
        if after.status == TicketStatus.RESOLVED and after.customer_email:
            publish_quietly(self.publisher, EmailJob(kind="ticket_resolved", ticket=after))

    def delete(self, ticket_id: str) -> None:
        """Hard delete. No events are published."""
        if not self.repository.delete(ticket_id):
            raise NotFoundError(f"Ticket {ticket_id} not found")
        logger.info("Ticket deleted", extra={"ticket_id": ticket_id})
