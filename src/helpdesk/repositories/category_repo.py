"""Ticket category persistence."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update

from helpdesk.models.category import Category, CategoryDraft
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import categories


class CategoryRepository(PostgresRepository):

    def create(self, draft: CategoryDraft) -> Category:
        now = datetime.now(timezone.utc)
        values = draft.model_dump()
        values.update(id=str(uuid.uuid4()), created_at=now, updated_at=now)
        with self.engine.begin() as conn:
            if values["order_index"] is None:
                last = conn.execute(select(func.max(categories.c.order_index))).scalar()
                values["order_index"] = 0 if last is None else last + 1
            row = conn.execute(insert(categories).values(**values).returning(*categories.c)).fetchone()
            return Category.model_validate(dict(row._mapping))

    def get(self, category_id: str) -> Optional[Category]:
        row = self.fetch_one(select(categories).where(categories.c.id == category_id))
        return Category.model_validate(row) if row else None

    def list(self, active_only: bool = True) -> List[Category]:
        stmt = select(categories).order_by(categories.c.order_index.asc(), categories.c.name.asc())
        if active_only:
            stmt = stmt.where(categories.c.active.is_(True))
        return [Category.model_validate(row) for row in self.fetch_all(stmt)]

    def update(self, category_id: str, values: Dict[str, Any]) -> Optional[Category]:
        stmt = (
            update(categories)
            .where(categories.c.id == category_id)
            .values(**values, updated_at=datetime.now(timezone.utc))
            .returning(*categories.c)
        )
        row = self.execute_returning(stmt)
        return Category.model_validate(row) if row else None

    def reorder(self, category_ids: List[str]) -> List[str]:
        """Set ``order_index`` to each id's position in one transaction; returns ids that do not exist."""
        now = datetime.now(timezone.utc)
        with self.engine.begin() as conn:
            existing = set(
                conn.execute(select(categories.c.id).where(categories.c.id.in_(category_ids))).scalars()
            )
            missing = [category_id for category_id in category_ids if category_id not in existing]
            if missing:
                return missing
            for position, category_id in enumerate(category_ids):
                conn.execute(
                    update(categories)
                    .where(categories.c.id == category_id)
                    .values(order_index=position, updated_at=now)
                )
        return []

    def delete(self, category_id: str) -> bool:
        return self.execute(delete(categories).where(categories.c.id == category_id)) > 0
