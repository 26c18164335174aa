"""Chat widget flow: knowledge lookup, AI reply and optional transcript storage."""

from __future__ import annotations

from typing import List, Optional, Sequence

from helpdesk.models.chat import ChatReply, ChatRole, ChatTurn
from helpdesk.services.ai_service import AIService
from helpdesk.services.knowledge_service import KnowledgeService
from helpdesk.services.message_service import MessageService
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


class ChatService:

    def __init__(self, ai: AIService, knowledge: KnowledgeService, messages: MessageService):
        self.ai = ai
        self.knowledge = knowledge
        self.messages = messages

    def respond(
        self,
        turns: Sequence[ChatTurn],
        ticket_id: Optional[str] = None,
        product: Optional[str] = None,
    ) -> ChatReply:
        last_user = next(
            (turn.content for turn in reversed(turns) if turn.role == ChatRole.USER), ""
        )

        # Customer turn is stored before the model call.
        if ticket_id:
            self.messages.create(ticket_id, last_user)

        entries = self.knowledge.search(last_user, product=product)
        context = self.knowledge.build_context(entries) if entries else None
        reply = self.ai.generate_response(list(turns), knowledge_context=context)

        message_id = None
        if ticket_id:
            message_id = self.messages.create(ticket_id, reply, is_ai=True).id

        knowledge_ids: List[str] = [entry.id for entry in entries]
        logger.info(
            "Chat reply generated",
            extra={"ticket_id": ticket_id, "knowledge_hits": len(knowledge_ids)},
        )
        return ChatReply(reply=reply, knowledge_ids=knowledge_ids, message_id=message_id)
