"""Message persistence."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, insert, select

from helpdesk.models.message import Message
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import messages


class MessageRepository(PostgresRepository):

    def create(
        self, ticket_id: str, content: str, user_id: Optional[str] = None, is_ai: bool = False
    ) -> Message:
        stmt = (
            insert(messages)
            .values(
                id=str(uuid.uuid4()),
                ticket_id=ticket_id,
                user_id=user_id,
                content=content,
                is_ai=is_ai,
                created_at=datetime.now(timezone.utc),
            )
            .returning(*messages.c)
        )
        return Message.model_validate(self.execute_returning(stmt))

    def get(self, message_id: str) -> Optional[Message]:
        row = self.fetch_one(select(messages).where(messages.c.id == message_id))
        return Message.model_validate(row) if row else None

    def list_for_ticket(self, ticket_id: str) -> List[Message]:
        stmt = (
            select(messages)
            .where(messages.c.ticket_id == ticket_id)
            .order_by(messages.c.created_at.asc(), messages.c.id.asc())
        )
        return [Message.model_validate(row) for row in self.fetch_all(stmt)]

    def delete(self, message_id: str) -> bool:
        return self.execute(delete(messages).where(messages.c.id == message_id)) > 0
