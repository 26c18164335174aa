"""
Ticket categories.

Categories are a managed, ordered list shown on the public ticket form.
Tickets keep the category name as free text, so renaming or deleting a
category never rewrites existing tickets.
"""

from __future__ import annotations

from typing import List

from sqlalchemy.exc import IntegrityError

from helpdesk.models.category import Category, CategoryDraft, CategoryUpdate
from helpdesk.repositories.category_repo import CategoryRepository
from helpdesk.utils.error_handling import ConflictError, NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

NAME_TAKEN = "Já existe uma categoria com este nome."


class CategoryService:

    def __init__(self, repository: CategoryRepository):
        self.repository = repository

    def list(self, active_only: bool = True) -> List[Category]:
        return self.repository.list(active_only=active_only)

    def get(self, category_id: str) -> Category:
        category = self.repository.get(category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def create(self, draft: CategoryDraft) -> Category:
        try:
            category = self.repository.create(draft)
        except IntegrityError:
            raise ConflictError(f"Category {draft.name} already exists", user_message=NAME_TAKEN)
        logger.info("Category created", extra={"category_id": category.id, "order_index": category.order_index})
        return category

    def update(self, category_id: str, update: CategoryUpdate) -> Category:
        changes = update.changes()
        for field in ("name", "description", "icon", "color", "active", "order_index"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("name cannot be blank")
        if not changes:
            return self.get(category_id)
        try:
            category = self.repository.update(category_id, changes)
        except IntegrityError:
            raise ConflictError(f"Category {changes.get('name')} already exists", user_message=NAME_TAKEN)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def toggle_active(self, category_id: str, active: bool) -> Category:
        return self.update(category_id, CategoryUpdate(active=active))

    def reorder(self, category_ids: List[str]) -> List[Category]:
        """Give each listed category its position as ``order_index``; all or nothing."""
        missing = self.repository.reorder(category_ids)
        if missing:
            raise NotFoundError(f"Categories not found: {', '.join(missing)}")
        logger.info("Categories reordered", extra={"count": len(category_ids)})
        return self.repository.list(active_only=False)

    def delete(self, category_id: str) -> None:
        if not self.repository.delete(category_id):
            raise NotFoundError(f"Category {category_id} not found")
        logger.info("Category deleted", extra={"category_id": category_id})
