"""Ticket persistence with optimistic concurrency."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update

from helpdesk.models.ticket import Ticket, TicketDraft, TicketStats, TicketStatus
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import tickets


def new_ticket_insert(draft: TicketDraft, user_id: Optional[str] = None):
    """INSERT ... RETURNING for a fresh ticket: status open, version 1."""
    now = datetime.now(timezone.utc)
    values = draft.model_dump(mode="json")
    values.update(
        id=str(uuid.uuid4()),
        user_id=user_id,
        status=TicketStatus.OPEN.value,
        created_at=now,
        updated_at=now,
        resolved_at=None,
        version=1,
    )
    return insert(tickets).values(**values).returning(*tickets.c)


class TicketRepository(PostgresRepository):
    """CRUD over the ``tickets`` table."""

    def create(self, draft: TicketDraft, user_id: Optional[str] = None) -> Ticket:
        row = self.execute_returning(new_ticket_insert(draft, user_id))
        return Ticket.model_validate(row)

    def get(self, ticket_id: str) -> Optional[Ticket]:
        row = self.fetch_one(select(tickets).where(tickets.c.id == ticket_id))
        return Ticket.model_validate(row) if row else None

    def list(
        self,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Ticket]:
        stmt = select(tickets)
        if status:
            stmt = stmt.where(tickets.c.status == status)
        if user_id:
            stmt = stmt.where(tickets.c.user_id == user_id)
        stmt = stmt.order_by(tickets.c.created_at.desc()).limit(limit).offset(offset)
        return [Ticket.model_validate(row) for row in self.fetch_all(stmt)]

    def update_if_version(
        self, ticket_id: str, expected_version: int, values: Dict[str, Any]
    ) -> Optional[Ticket]:
        """
        Compare-and-swap write.

        Returns the stored ticket, or None when the row is gone or its version
        no longer matches ``expected_version``.
        """
        stmt = (
            update(tickets)
            .where(tickets.c.id == ticket_id)
            .where(tickets.c.version == expected_version)
            .values(
                **values,
                version=tickets.c.version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(*tickets.c)
        )
        row = self.execute_returning(stmt)
        return Ticket.model_validate(row) if row else None

    def attach_owner(self, ticket_id: str, user_id: str) -> Optional[Ticket]:
        """Record the first staff identity on a ticket that has none."""
        stmt = (
            update(tickets)
            .where(tickets.c.id == ticket_id)
            .where(tickets.c.user_id.is_(None))
            .values(
                user_id=user_id,
                version=tickets.c.version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(*tickets.c)
        )
        row = self.execute_returning(stmt)
        return Ticket.model_validate(row) if row else None

    def delete(self, ticket_id: str) -> bool:
        return self.execute(delete(tickets).where(tickets.c.id == ticket_id)) > 0

    def stats(self, user_id: Optional[str] = None) -> TicketStats:
        stmt = select(tickets.c.status, func.count()).group_by(tickets.c.status)
        if user_id:
            stmt = stmt.where(tickets.c.user_id == user_id)
        with self.engine.connect() as conn:
            counts = {status: count for status, count in conn.execute(stmt)}
        return TicketStats(total=sum(counts.values()), **counts)
