"""Knowledge base persistence."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, insert, select, update

from helpdesk.models.knowledge import KnowledgeDraft, KnowledgeEntry
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import knowledge_base


class KnowledgeRepository(PostgresRepository):

    def create(self, draft: KnowledgeDraft) -> KnowledgeEntry:
        now = datetime.now(timezone.utc)
        values = draft.model_dump(mode="json")
        values.update(id=str(uuid.uuid4()), created_at=now, updated_at=now)
        stmt = insert(knowledge_base).values(**values).returning(*knowledge_base.c)
        return KnowledgeEntry.model_validate(self.execute_returning(stmt))

    def get(self, entry_id: str) -> Optional[KnowledgeEntry]:
        row = self.fetch_one(select(knowledge_base).where(knowledge_base.c.id == entry_id))
        return KnowledgeEntry.model_validate(row) if row else None

    def list(
        self,
        active_only: bool = False,
        category: Optional[str] = None,
        product: Optional[str] = None,
    ) -> List[KnowledgeEntry]:
        stmt = select(knowledge_base)
        if active_only:
            stmt = stmt.where(knowledge_base.c.active.is_(True))
        if category:
            stmt = stmt.where(knowledge_base.c.category == category)
        if product:
            stmt = stmt.where(knowledge_base.c.product == product)
        stmt = stmt.order_by(knowledge_base.c.title.asc())
        return [KnowledgeEntry.model_validate(row) for row in self.fetch_all(stmt)]

    def update(self, entry_id: str, values: Dict[str, Any]) -> Optional[KnowledgeEntry]:
        stmt = (
            update(knowledge_base)
            .where(knowledge_base.c.id == entry_id)
            .values(**values, updated_at=datetime.now(timezone.utc))
            .returning(*knowledge_base.c)
        )
        row = self.execute_returning(stmt)
        return KnowledgeEntry.model_validate(row) if row else None

    def delete(self, entry_id: str) -> bool:
        return self.execute(delete(knowledge_base).where(knowledge_base.c.id == entry_id)) > 0
