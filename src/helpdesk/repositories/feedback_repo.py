"""AI feedback persistence."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, insert, select, update

from helpdesk.models.feedback import AIFeedback
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import ai_feedback


class FeedbackRepository(PostgresRepository):

    def create(
        self,
        ticket_id: str,
        message_id: str,
        rating: str,
        comment: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AIFeedback:
        stmt = (
            insert(ai_feedback)
            .values(
                id=str(uuid.uuid4()),
                ticket_id=ticket_id,
                message_id=message_id,
                rating=rating,
                comment=comment,
                user_id=user_id,
                created_at=datetime.now(timezone.utc),
            )
            .returning(*ai_feedback.c)
        )
        return AIFeedback.model_validate(self.execute_returning(stmt))

    def get(self, feedback_id: str) -> Optional[AIFeedback]:
        row = self.fetch_one(select(ai_feedback).where(ai_feedback.c.id == feedback_id))
        return AIFeedback.model_validate(row) if row else None

    def list(
        self,
        ticket_id: Optional[str] = None,
        message_ids: Optional[List[str]] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[AIFeedback]:
        stmt = select(ai_feedback)
        if ticket_id:
            stmt = stmt.where(ai_feedback.c.ticket_id == ticket_id)
        if message_ids is not None:
            stmt = stmt.where(ai_feedback.c.message_id.in_(message_ids))
        if since is not None:
            stmt = stmt.where(ai_feedback.c.created_at >= since)
        stmt = stmt.order_by(ai_feedback.c.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        return [AIFeedback.model_validate(row) for row in self.fetch_all(stmt)]

    def update(self, feedback_id: str, values: Dict[str, Any]) -> Optional[AIFeedback]:
        stmt = (
            update(ai_feedback)
            .where(ai_feedback.c.id == feedback_id)
            .values(**values)
            .returning(*ai_feedback.c)
        )
        row = self.execute_returning(stmt)
        return AIFeedback.model_validate(row) if row else None

    def delete(self, feedback_id: str) -> bool:
        return self.execute(delete(ai_feedback).where(ai_feedback.c.id == feedback_id)) > 0
