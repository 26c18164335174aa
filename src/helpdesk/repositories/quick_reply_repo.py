"""Quick reply persistence."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, insert, select, update

from helpdesk.models.quick_reply import QuickReply, QuickReplyDraft
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import quick_replies


class QuickReplyRepository(PostgresRepository):

    def create(self, draft: QuickReplyDraft, created_by: Optional[str] = None) -> QuickReply:
        now = datetime.now(timezone.utc)
        values = draft.model_dump()
        values.update(id=str(uuid.uuid4()), created_by=created_by, created_at=now, updated_at=now)
        stmt = insert(quick_replies).values(**values).returning(*quick_replies.c)
        return QuickReply.model_validate(self.execute_returning(stmt))

    def get(self, reply_id: str) -> Optional[QuickReply]:
        row = self.fetch_one(select(quick_replies).where(quick_replies.c.id == reply_id))
        return QuickReply.model_validate(row) if row else None

    def by_shortcut(self, shortcut: str) -> Optional[QuickReply]:
        stmt = select(quick_replies).where(
            quick_replies.c.shortcut == shortcut,
            quick_replies.c.active.is_(True),
        )
        row = self.fetch_one(stmt)
        return QuickReply.model_validate(row) if row else None

    def list(self, active_only: bool = True) -> List[QuickReply]:
        stmt = select(quick_replies).order_by(quick_replies.c.category.asc(), quick_replies.c.title.asc())
        if active_only:
            stmt = stmt.where(quick_replies.c.active.is_(True))
        return [QuickReply.model_validate(row) for row in self.fetch_all(stmt)]

    def categories(self) -> List[str]:
        stmt = (
            select(quick_replies.c.category)
            .where(quick_replies.c.active.is_(True))
            .distinct()
            .order_by(quick_replies.c.category.asc())
        )
        return [row["category"] for row in self.fetch_all(stmt)]

    def update(self, reply_id: str, values: Dict[str, Any]) -> Optional[QuickReply]:
        stmt = (
            update(quick_replies)
            .where(quick_replies.c.id == reply_id)
            .values(**values, updated_at=datetime.now(timezone.utc))
            .returning(*quick_replies.c)
        )
        row = self.execute_returning(stmt)
        return QuickReply.model_validate(row) if row else None

    def delete(self, reply_id: str) -> bool:
        return self.execute(delete(quick_replies).where(quick_replies.c.id == reply_id)) > 0
