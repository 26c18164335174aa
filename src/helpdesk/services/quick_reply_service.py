"""Staff canned replies, looked up by shortcut while answering a ticket."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from helpdesk.models.quick_reply import QuickReply, QuickReplyDraft, QuickReplyUpdate, normalise_shortcut
from helpdesk.repositories.quick_reply_repo import QuickReplyRepository
from helpdesk.utils.error_handling import ConflictError, NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

SHORTCUT_TAKEN = "Já existe uma resposta rápida com este atalho."


class QuickReplyService:

    def __init__(self, repository: QuickReplyRepository):
        self.repository = repository

    def list(self, active_only: bool = True) -> List[QuickReply]:
        return self.repository.list(active_only=active_only)

    def get(self, reply_id: str) -> QuickReply:
        reply = self.repository.get(reply_id)
        if reply is None:
            raise NotFoundError(f"Quick reply {reply_id} not found")
        return reply

    def by_shortcut(self, shortcut: str) -> Optional[QuickReply]:
        """Active reply for ``shortcut`` (with or without the leading slash), or None."""
        return self.repository.by_shortcut(normalise_shortcut(shortcut))

    def categories(self) -> List[str]:
        return self.repository.categories()

    def create(self, draft: QuickReplyDraft, created_by: Optional[str] = None) -> QuickReply:
        try:
            reply = self.repository.create(draft, created_by=created_by)
        except IntegrityError:
            raise ConflictError(
                f"Shortcut {draft.shortcut} is already in use", user_message=SHORTCUT_TAKEN
            )
        logger.info("Quick reply created", extra={"quick_reply_id": reply.id, "shortcut": reply.shortcut})
        return reply

    def update(self, reply_id: str, update: QuickReplyUpdate) -> QuickReply:
        changes = update.changes()
        for field in ("title", "shortcut", "content", "category", "active"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        for field in ("title", "content", "category"):
            if field in changes:
                changes[field] = changes[field].strip()
                if not changes[field]:
                    raise ValidationError(f"{field} cannot be blank")
        if not changes:
            return self.get(reply_id)
        try:
            reply = self.repository.update(reply_id, changes)
        except IntegrityError:
            raise ConflictError(
                f"Shortcut {changes.get('shortcut')} is already in use", user_message=SHORTCUT_TAKEN
            )
        if reply is None:
            raise NotFoundError(f"Quick reply {reply_id} not found")
        return reply

    def toggle_active(self, reply_id: str, active: bool) -> QuickReply:
        return self.update(reply_id, QuickReplyUpdate(active=active))

    def delete(self, reply_id: str) -> None:
        if not self.repository.delete(reply_id):
            raise NotFoundError(f"Quick reply {reply_id} not found")
        logger.info("Quick reply deleted", extra={"quick_reply_id": reply_id})
