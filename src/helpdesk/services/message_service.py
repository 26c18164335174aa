"""Ticket conversation messages."""

from __future__ import annotations

from typing import List, Optional

from helpdesk.models.message import Message
from helpdesk.models.webhook import WebhookEvents
from helpdesk.repositories.message_repo import MessageRepository
from helpdesk.repositories.ticket_repo import TicketRepository
from helpdesk.services.event_queue import EmailJob, EventPublisher, WebhookJob, publish_quietly
from helpdesk.utils.error_handling import NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


class MessageService:
    """Append and read messages; staff replies notify the customer."""

    def __init__(
        self,
        repository: MessageRepository,
        tickets: TicketRepository,
        publisher: EventPublisher,
    ):
        self.repository = repository
        self.tickets = tickets
        self.publisher = publisher

    def create(
        self,
        ticket_id: str,
        content: str,
        author_id: Optional[str] = None,
        is_ai: bool = False,
        author_name: Optional[str] = None,
    ) -> Message:
        content = (content or "").strip()
        if not content:
            raise ValidationError("content must be provided")
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")

        if is_ai:
            author_id = None
        message = self.repository.create(ticket_id, content, user_id=author_id, is_ai=is_ai)
        logger.info(
            "Message created",
            extra={"ticket_id": ticket_id, "message_id": message.id, "is_ai": is_ai},
        )
        publish_quietly(
            self.publisher,
            WebhookJob(event=WebhookEvents.message_sent(ticket_id, content, is_ai_message=is_ai)),
        )

        if author_id and not is_ai:
            if ticket.user_id is None:
                ticket = self.tickets.attach_owner(ticket_id, author_id) or ticket
            if ticket.customer_email:
                publish_quietly(
                    self.publisher,
                    EmailJob(
                        kind="staff_reply",
                        ticket=ticket,
                        reply_content=content,
                        author_name=author_name,
                    ),
                )
        return message

    def list(self, ticket_id: str) -> List[Message]:
        if self.tickets.get(ticket_id) is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return self.repository.list_for_ticket(ticket_id)

    def get(self, message_id: str) -> Message:
        message = self.repository.get(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found")
        return message

    def delete(self, message_id: str) -> None:
        if not self.repository.delete(message_id):
            raise NotFoundError(f"Message {message_id} not found")
        logger.info("Message deleted", extra={"message_id": message_id})
