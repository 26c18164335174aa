"""External conversation to ticket mappings for inbound channels."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import insert, select

from helpdesk.models.channel import ChannelSource, ConversationMapping
from helpdesk.models.ticket import Ticket, TicketDraft
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import conversation_mappings
from helpdesk.repositories.ticket_repo import new_ticket_insert


class ConversationMappingRepository(PostgresRepository):

    def find(self, source: ChannelSource, external_id: str) -> Optional[ConversationMapping]:
        stmt = select(conversation_mappings).where(
            conversation_mappings.c.source == source.value,
            conversation_mappings.c.external_id == external_id,
        )
        row = self.fetch_one(stmt)
        return ConversationMapping.model_validate(row) if row else None

    def open_conversation(
        self,
        draft: TicketDraft,
        source: ChannelSource,
        external_id: str,
        external_metadata: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Ticket, ConversationMapping]:
        """
        Insert the ticket and its mapping in one transaction.

        When another delivery already mapped ``external_id`` the unique
        constraint raises ``IntegrityError`` and the ticket insert is rolled back.
        """
        with self.engine.begin() as conn:
            ticket = Ticket.model_validate(dict(conn.execute(new_ticket_insert(draft)).fetchone()._mapping))
            stmt = (
                insert(conversation_mappings)
                .values(
                    id=str(uuid.uuid4()),
                    ticket_id=ticket.id,
                    source=source.value,
                    external_id=external_id,
                    external_metadata=external_metadata or {},
                    created_at=datetime.now(timezone.utc),
                )
                .returning(*conversation_mappings.c)
            )
            mapping = ConversationMapping.model_validate(dict(conn.execute(stmt).fetchone()._mapping))
        return ticket, mapping
