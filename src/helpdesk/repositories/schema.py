"""
Table definitions (SQLAlchemy Core) and schema helpers.

Keywords and webhook event lists are JSON columns so the same tables work on
PostgreSQL and on the SQLite databases used in tests.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.types import TypeDecorator

from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

CHANGE_CHANNEL = "helpdesk_changes"


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetimes in, timezone-aware UTC datetimes out."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


metadata = MetaData()

tickets = Table(
    "tickets",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default="open"),
    Column("priority", String(20), nullable=False, server_default="medium"),
    Column("category", String(100), nullable=False),
    Column("customer_name", Text),
    Column("customer_email", Text),
    Column("customer_cpf", String(20)),
    Column("customer_phone", String(20)),
    Column("product", String(100)),
    Column("assigned_to", String(64)),
    Column("resolution", Text),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Column("resolved_at", UTCDateTime),
    Column("version", Integer, nullable=False, server_default="1"),
    Index("ix_tickets_status", "status"),
    Index("ix_tickets_user_id", "user_id"),
)

messages = Table(
    "messages",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "ticket_id",
        String(36),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("user_id", String(64)),
    Column("content", Text, nullable=False),
    Column("is_ai", Boolean, nullable=False, server_default="false"),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_messages_ticket_id", "ticket_id"),
)

webhooks = Table(
    "webhooks",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", Text, nullable=False),
    Column("url", Text, nullable=False),
    Column("events", JSON, nullable=False),
    Column("active", Boolean, nullable=False, server_default="true"),
    Column("secret", Text),
    Column("created_at", UTCDateTime, nullable=False),
)

webhook_logs = Table(
    "webhook_logs",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "webhook_id",
        String(36),
        ForeignKey("webhooks.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("event_type", String(40), nullable=False),
    Column("ticket_id", String(36), nullable=False),
    Column("status_code", Integer, nullable=False),
    Column("success", Boolean, nullable=False),
    Column("response_body", Text),
    Column("error_message", Text),
    Column("executed_at", UTCDateTime, nullable=False),
    Index("ix_webhook_logs_webhook_id", "webhook_id"),
)

knowledge_base = Table(
    "knowledge_base",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("title", Text, nullable=False),
    Column("category", String(100), nullable=False),
    Column("content", Text, nullable=False),
    Column("keywords", JSON, nullable=False),
    Column("product", String(100)),
    Column("active", Boolean, nullable=False, server_default="true"),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
)

ai_feedback = Table(
    "ai_feedback",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "ticket_id",
        String(36),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "message_id",
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("rating", String(20), nullable=False),
    Column("comment", Text),
    Column("user_id", String(64)),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_ai_feedback_ticket_id", "ticket_id"),
)

conversation_mappings = Table(
    "conversation_mappings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "ticket_id",
        String(36),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("source", String(20), nullable=False),
    Column("external_id", Text, nullable=False),
    Column("external_metadata", JSON, nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    UniqueConstraint("source", "external_id", name="uq_conversation_source_external"),
)


quick_replies = Table(
    "quick_replies",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("title", Text, nullable=False),
    Column("shortcut", String(64), nullable=False),
    Column("content", Text, nullable=False),
    Column("category", String(100), nullable=False),
    Column("active", Boolean, nullable=False, server_default="true"),
    Column("created_by", String(64)),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    UniqueConstraint("shortcut", name="uq_quick_replies_shortcut"),
)

categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("icon", String(64), nullable=False, server_default=""),
    Column("color", String(32), nullable=False, server_default=""),
    Column("active", Boolean, nullable=False, server_default="true"),
    Column("order_index", Integer, nullable=False, server_default="0"),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    UniqueConstraint("name", name="uq_categories_name"),
)

def create_schema(engine: Engine) -> None:
    """Create every table that does not exist yet."""
    metadata.create_all(engine)
    logger.info("Schema ready", extra={"tables": sorted(metadata.tables)})


# Large text columns are stripped so payloads stay under the 8000 byte NOTIFY limit.
_NOTIFY_FUNCTION = f"""
CREATE OR REPLACE FUNCTION helpdesk_notify_change() RETURNS trigger AS $$
DECLARE
    payload jsonb;
BEGIN
    payload := jsonb_build_object(
        'table', TG_TABLE_NAME,
        'event_type', TG_OP,
        'commit_timestamp', now(),
        'new', CASE WHEN TG_OP = 'DELETE' THEN '{{}}'::jsonb
                    ELSE to_jsonb(NEW) - 'description' - 'content' END,
        'old', CASE WHEN TG_OP = 'INSERT' THEN '{{}}'::jsonb
                    ELSE to_jsonb(OLD) - 'description' - 'content' END
    );
    PERFORM pg_notify('{CHANGE_CHANNEL}', payload::text);
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

_TRIGGER_TEMPLATE = """
DROP TRIGGER IF EXISTS {table}_notify_change ON {table};
CREATE TRIGGER {table}_notify_change
AFTER INSERT OR UPDATE OR DELETE ON {table}
FOR EACH ROW EXECUTE FUNCTION helpdesk_notify_change();
"""


def install_change_triggers(engine: Engine, tables=("tickets", "messages")) -> None:
    """Install the NOTIFY trigger feeding the change feed (PostgreSQL only)."""
    if engine.dialect.name != "postgresql":
        logger.warning(
            "Change triggers require PostgreSQL; skipping",
            extra={"dialect": engine.dialect.name},
        )
        return
    with engine.begin() as conn:
        conn.execute(text(_NOTIFY_FUNCTION))
        for table in tables:
            for statement in _TRIGGER_TEMPLATE.format(table=table).split(";"):
                if statement.strip():
                    conn.execute(text(statement))
    logger.info("Change triggers installed", extra={"tables": list(tables)})
