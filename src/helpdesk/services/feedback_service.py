"""Staff feedback on AI-generated replies."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from helpdesk.models.feedback import AIFeedback, FeedbackRating, FeedbackStats, FeedbackUpdate
from helpdesk.repositories.feedback_repo import FeedbackRepository
from helpdesk.repositories.message_repo import MessageRepository
from helpdesk.utils.error_handling import NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


def _percent(part: int, total: int) -> int:
    return round(part / total * 100) if total else 0


class FeedbackService:

    def __init__(self, repository: FeedbackRepository, messages: MessageRepository):
        self.repository = repository
        self.messages = messages

    def submit(
        self,
        ticket_id: str,
        message_id: str,
        rating: FeedbackRating,
        comment: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AIFeedback:
        message = self.messages.get(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found")
        if message.ticket_id != ticket_id:
            raise ValidationError("Message does not belong to this ticket")
        if not message.is_ai:
            raise ValidationError("Feedback can only be given on AI messages")

        feedback = self.repository.create(
            ticket_id,
            message_id,
            FeedbackRating(rating).value,
            comment=(comment or "").strip() or None,
            user_id=user_id,
        )
        logger.info(
            "AI feedback recorded",
            extra={"ticket_id": ticket_id, "message_id": message_id, "rating": feedback.rating.value},
        )
        return feedback

    def update(self, feedback_id: str, update: FeedbackUpdate) -> AIFeedback:
        changes = update.changes()
        if changes.get("rating", "") is None:
            raise ValidationError("rating cannot be null")
        if "rating" in changes:
            changes["rating"] = changes["rating"].value
        if not changes:
            return self.get(feedback_id)
        feedback = self.repository.update(feedback_id, changes)
        if feedback is None:
            raise NotFoundError(f"Feedback {feedback_id} not found")
        return feedback

    def get(self, feedback_id: str) -> AIFeedback:
        feedback = self.repository.get(feedback_id)
        if feedback is None:
            raise NotFoundError(f"Feedback {feedback_id} not found")
        return feedback

    def by_ticket(self, ticket_id: str) -> List[AIFeedback]:
        return self.repository.list(ticket_id=ticket_id)

    def by_message(self, message_id: str) -> Optional[AIFeedback]:
        found = self.repository.list(message_ids=[message_id], limit=1)
        return found[0] if found else None

    def by_messages(self, message_ids: List[str]) -> Dict[str, AIFeedback]:
        """Latest feedback per message id."""
        if not message_ids:
            return {}
        result: Dict[str, AIFeedback] = {}
        for feedback in self.repository.list(message_ids=message_ids):
            result.setdefault(feedback.message_id, feedback)
        return result

    def list(self, limit: int = 100) -> List[AIFeedback]:
        return self.repository.list(limit=limit)

    def stats(self, days: int = 30) -> FeedbackStats:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        rows = self.repository.list(since=since)
        positive = sum(1 for row in rows if row.rating == FeedbackRating.POSITIVE)
        negative = len(rows) - positive
        return FeedbackStats(
            total=len(rows),
            positive=positive,
            negative=negative,
            positive_rate=_percent(positive, len(rows)),
            negative_rate=_percent(negative, len(rows)),
            recent=rows[:10],
        )

    def delete(self, feedback_id: str) -> None:
        if not self.repository.delete(feedback_id):
            raise NotFoundError(f"Feedback {feedback_id} not found")
