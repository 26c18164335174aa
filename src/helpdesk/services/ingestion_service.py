"""
Inbound channel ingestion (email, Instagram DMs).

The first message of an external conversation opens a ticket and records a
conversation mapping; later messages on the same conversation are appended
to that ticket as customer messages.
"""

from __future__ import annotations

import hmac
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from helpdesk.models.channel import ChannelSource, InboundEmail, IngestionResult, InstagramDM
from helpdesk.models.ticket import TicketDraft, TicketPriority
from helpdesk.repositories.mapping_repo import ConversationMappingRepository
from helpdesk.services.message_service import MessageService
from helpdesk.services.ticket_service import TicketService
from helpdesk.utils.logging_config import get_logger
from helpdesk.utils.validators import is_valid_email

logger = get_logger(__name__)

_SENDER_RE = re.compile(r"^(.+?)\s*<(.+?)>$")

NO_SUBJECT = "Sem assunto"
NO_BODY = "Email sem conteúdo"


def parse_sender(sender: str) -> Tuple[str, str]:
    """Split ``"Name <addr>"`` into (name, address); a bare address yields its local part as name."""
    sender = (sender or "").strip()
    match = _SENDER_RE.match(sender)
    if match:
        return match.group(1).strip().replace('"', "").replace("'", ""), match.group(2).strip()
    return sender.split("@")[0], sender


def parse_instagram_webhook(payload: Dict[str, Any]) -> List[InstagramDM]:
    """Text DMs from a Meta webhook envelope. Echoes of our own messages and non-text events are skipped."""
    messages: List[InstagramDM] = []
    if (payload or {}).get("object") != "instagram":
        return messages
    for entry in payload.get("entry") or []:
        for item in entry.get("messaging") or []:
            message = item.get("message") or {}
            text = (message.get("text") or "").strip()
            sender_id = (item.get("sender") or {}).get("id")
            if message.get("is_echo") or not text or not sender_id:
                continue
            messages.append(
                InstagramDM(
                    conversation_id=sender_id,
                    sender_id=sender_id,
                    username=(item.get("sender") or {}).get("username"),
                    text=text,
                    message_id=message.get("mid"),
                )
            )
    return messages


def verify_instagram_subscription(
    mode: Optional[str], token: Optional[str], challenge: Optional[str], expected: Optional[str]
) -> Optional[str]:
    """Return the challenge to echo back when Meta's subscription handshake is valid."""
    if mode != "subscribe" or not expected or token is None:
        return None
    if not hmac.compare_digest(token, expected):
        return None
    return challenge


class IngestionService:

    def __init__(
        self,
        tickets: TicketService,
        messages: MessageService,
        mappings: ConversationMappingRepository,
    ):
        self.tickets = tickets
        self.messages = messages
        self.mappings = mappings

    def ingest_email(self, email: InboundEmail) -> IngestionResult:
        name, address = parse_sender(email.sender)
        body = (email.body or "").strip() or NO_BODY
        draft = TicketDraft(
            title=(email.subject or "").strip() or NO_SUBJECT,
            description=body,
            category="Suporte",
            priority=TicketPriority.MEDIUM,
            customer_name=name or None,
            customer_email=address if is_valid_email(address) else None,
        )
        return self._open_or_append(
            ChannelSource.EMAIL,
            email.conversation_key,
            draft,
            body,
            {"message_id": email.message_id, "from": email.sender, "subject": email.subject},
        )

    def ingest_instagram_dm(self, dm: InstagramDM) -> IngestionResult:
        username = dm.username or dm.sender_id
        draft = TicketDraft(
            title=f"Instagram DM de @{username}",
            description=dm.text,
            category="Instagram",
            priority=TicketPriority.MEDIUM,
            customer_name=username,
        )
        return self._open_or_append(
            ChannelSource.INSTAGRAM,
            dm.conversation_id,
            draft,
            dm.text,
            {"from_id": dm.sender_id, "from_username": dm.username, "message_id": dm.message_id},
        )

    def _open_or_append(
        self,
        source: ChannelSource,
        external_id: str,
        draft: TicketDraft,
        content: str,
        external_metadata: Dict[str, Any],
    ) -> IngestionResult:
        mapping = self.mappings.find(source, external_id)
        if mapping is None:
            try:
                ticket, _ = self.mappings.open_conversation(draft, source, external_id, external_metadata)
            except IntegrityError:
                # Another delivery opened this conversation first.
                mapping = self.mappings.find(source, external_id)
                if mapping is None:
                    raise
            else:
                self.tickets.announce_created(ticket)
                logger.info(
                    "Ticket created from inbound message",
                    extra={"ticket_id": ticket.id, "source": source.value, "external_id": external_id},
                )
                return IngestionResult(ticket_id=ticket.id, created_ticket=True)

        message = self.messages.create(mapping.ticket_id, content)
        logger.info(
            "Inbound message appended to ticket",
            extra={"ticket_id": mapping.ticket_id, "source": source.value, "external_id": external_id},
        )
        return IngestionResult(ticket_id=mapping.ticket_id, message_id=message.id)
