"""
Explicit application state.

``ServiceContainer`` builds repositories and services once per Lambda
container (or test) from ``AppSettings`` and an engine, and handlers receive
it instead of reaching for module globals.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import Engine

from helpdesk.config.settings import AppSettings
from helpdesk.repositories.category_repo import CategoryRepository
from helpdesk.repositories.feedback_repo import FeedbackRepository
from helpdesk.repositories.knowledge_repo import KnowledgeRepository
from helpdesk.repositories.mapping_repo import ConversationMappingRepository
from helpdesk.repositories.message_repo import MessageRepository
from helpdesk.repositories.quick_reply_repo import QuickReplyRepository
from helpdesk.repositories.ticket_repo import TicketRepository
from helpdesk.repositories.webhook_repo import WebhookRepository
from helpdesk.services.ai_service import AIService
from helpdesk.services.category_service import CategoryService
from helpdesk.services.chat_service import ChatService
from helpdesk.services.email_service import EmailNotificationService
from helpdesk.services.event_queue import (
    EventPublisher,
    InProcessEventQueue,
    JobRunner,
    SqsEventPublisher,
)
from helpdesk.services.feedback_service import FeedbackService
from helpdesk.services.ingestion_service import IngestionService
from helpdesk.services.knowledge_service import KnowledgeService
from helpdesk.services.message_service import MessageService
from helpdesk.services.quick_reply_service import QuickReplyService
from helpdesk.services.ticket_service import TicketService, TransitionPolicy
from helpdesk.services.webhook_service import WebhookDispatcher, WebhookService
from helpdesk.utils.cache_service import LRUCache


class ServiceContainer:
    """Wires every repository and service used by the handlers."""

    def __init__(
        self,
        settings: AppSettings,
        engine: Engine,
        publisher: Optional[EventPublisher] = None,
        ai_client=None,
        http_session=None,
    ):
        self.settings = settings
        self.engine = engine

        self.ticket_repo = TicketRepository(engine)
        self.message_repo = MessageRepository(engine)
        self.webhook_repo = WebhookRepository(engine)
        self.knowledge_repo = KnowledgeRepository(engine)
        self.feedback_repo = FeedbackRepository(engine)
        self.mapping_repo = ConversationMappingRepository(engine)
        self.quick_reply_repo = QuickReplyRepository(engine)
        self.category_repo = CategoryRepository(engine)

        allow_http = not settings.is_production
        self.webhook_dispatcher = WebhookDispatcher(
            self.webhook_repo,
            session=http_session,
            timeout_seconds=settings.webhook_timeout_seconds,
            max_workers=settings.webhook_max_workers,
            allow_http=allow_http,
        )
        self.email_service = EmailNotificationService(
            api_key=settings.resend_api_key,
            from_email=settings.from_email,
            from_name=settings.from_name,
            app_url=settings.app_url,
            brand_name=settings.brand_name,
            timeout_seconds=settings.webhook_timeout_seconds,
            session=http_session,
        )
        self.job_runner = JobRunner(self.webhook_dispatcher, self.email_service)
        self.publisher = publisher or self._default_publisher()

        policy = (
            TransitionPolicy.restricted()
            if settings.enforce_status_transitions
            else TransitionPolicy.permissive()
        )
        self.tickets = TicketService(self.ticket_repo, self.publisher, policy=policy)
        self.messages = MessageService(self.message_repo, self.ticket_repo, self.publisher)
        self.webhooks = WebhookService(self.webhook_repo, allow_http=allow_http)
        self.knowledge = KnowledgeService(
            self.knowledge_repo,
            cache=LRUCache(max_size=settings.cache_max_size, ttl_seconds=settings.cache_ttl_seconds),
        )
        self.ai = AIService(
            model_id=settings.model_id,
            region=settings.bedrock_region,
            enabled=settings.ai_enabled,
            brand_name=settings.brand_name,
            timeout_seconds=settings.ai_timeout_seconds,
            max_tokens=settings.ai_max_tokens,
            temperature=settings.ai_temperature,
            client=ai_client,
        )
        self.chat = ChatService(self.ai, self.knowledge, self.messages)
        self.feedback = FeedbackService(self.feedback_repo, self.message_repo)
        self.ingestion = IngestionService(self.tickets, self.messages, self.mapping_repo)
        self.quick_replies = QuickReplyService(self.quick_reply_repo)
        self.categories = CategoryService(self.category_repo)

    def _default_publisher(self) -> EventPublisher:
        if self.settings.events_queue_url:
            return SqsEventPublisher(self.settings.events_queue_url)
        return InProcessEventQueue(self.job_runner)

    def ticket_title(self, ticket_id: str) -> Optional[str]:
        """Title lookup for the notification relay."""
        ticket = self.ticket_repo.get(ticket_id)
        return ticket.title if ticket else None
