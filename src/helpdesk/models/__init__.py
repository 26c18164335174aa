"""Pydantic models shared by handlers, services and repositories."""

from helpdesk.models.channel import (  # noqa: F401
    ChannelSource,
    ConversationMapping,
    InboundEmail,
    IngestionResult,
    InstagramDM,
)
from helpdesk.models.category import Category, CategoryDraft, CategoryOrder, CategoryUpdate  # noqa: F401
from helpdesk.models.chat import (  # noqa: F401
    AnalyzeRequest,
    ChatReply,
    ChatRequest,
    ChatRole,
    ChatTurn,
    TicketAnalysis,
)
from helpdesk.models.feedback import (  # noqa: F401
    AIFeedback,
    FeedbackDraft,
    FeedbackRating,
    FeedbackStats,
    FeedbackUpdate,
)
from helpdesk.models.knowledge import KnowledgeDraft, KnowledgeEntry, KnowledgeUpdate  # noqa: F401
from helpdesk.models.message import AuthorKind, Message, MessageDraft  # noqa: F401
from helpdesk.models.notification import (  # noqa: F401
    Alert,
    AlertKind,
    ChangeEvent,
    ChangeType,
    ConnectionState,
)
from helpdesk.models.quick_reply import QuickReply, QuickReplyDraft, QuickReplyUpdate  # noqa: F401
from helpdesk.models.response import ApiResponse  # noqa: F401
from helpdesk.models.ticket import (  # noqa: F401
    STATUS_LABELS,
    Ticket,
    TicketDraft,
    TicketPriority,
    TicketStats,
    TicketStatus,
    TicketUpdate,
)
from helpdesk.models.webhook import (  # noqa: F401
    MessageSentEvent,
    StatusChangedEvent,
    TicketCreatedEvent,
    TicketUpdatedEvent,
    WebhookConfig,
    WebhookDraft,
    WebhookEvent,
    WebhookEvents,
    WebhookEventType,
    WebhookExecutionLog,
    WebhookUpdate,
    webhook_event_adapter,
)
