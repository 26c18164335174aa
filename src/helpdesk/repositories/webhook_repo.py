"""Webhook configuration and execution-log persistence."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, insert, select, update

from helpdesk.models.webhook import (
    WebhookConfig,
    WebhookDraft,
    WebhookEventType,
    WebhookExecutionLog,
)
from helpdesk.repositories.postgres_repo import PostgresRepository
from helpdesk.repositories.schema import webhook_logs, webhooks


class WebhookRepository(PostgresRepository):
    """Configs plus their append-only delivery log."""

    def create(self, draft: WebhookDraft) -> WebhookConfig:
        values = draft.model_dump(mode="json")
        values.update(id=str(uuid.uuid4()), created_at=datetime.now(timezone.utc))
        row = self.execute_returning(insert(webhooks).values(**values).returning(*webhooks.c))
        return WebhookConfig.model_validate(row)

    def get(self, webhook_id: str) -> Optional[WebhookConfig]:
        row = self.fetch_one(select(webhooks).where(webhooks.c.id == webhook_id))
        return WebhookConfig.model_validate(row) if row else None

    def list(self) -> List[WebhookConfig]:
        stmt = select(webhooks).order_by(webhooks.c.created_at.desc())
        return [WebhookConfig.model_validate(row) for row in self.fetch_all(stmt)]

    def active_for_event(self, event_type: WebhookEventType) -> List[WebhookConfig]:
        """Active configs subscribed to ``event_type``; the event list is JSON so matching happens here."""
        stmt = select(webhooks).where(webhooks.c.active.is_(True))
        configs = [WebhookConfig.model_validate(row) for row in self.fetch_all(stmt)]
        return [config for config in configs if config.subscribes_to(event_type)]

    def update(self, webhook_id: str, values: Dict[str, Any]) -> Optional[WebhookConfig]:
        stmt = (
            update(webhooks)
            .where(webhooks.c.id == webhook_id)
            .values(**values)
            .returning(*webhooks.c)
        )
        row = self.execute_returning(stmt)
        return WebhookConfig.model_validate(row) if row else None

    def delete(self, webhook_id: str) -> bool:
        return self.execute(delete(webhooks).where(webhooks.c.id == webhook_id)) > 0

    def add_log(
        self,
        webhook_id: str,
        event_type: str,
        ticket_id: str,
        status_code: int,
        success: bool,
        response_body: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> WebhookExecutionLog:
        stmt = (
            insert(webhook_logs)
            .values(
                id=str(uuid.uuid4()),
                webhook_id=webhook_id,
                event_type=str(WebhookEventType(event_type).value),
                ticket_id=ticket_id,
                status_code=status_code,
                success=success,
                response_body=response_body,
                error_message=error_message,
                executed_at=datetime.now(timezone.utc),
            )
            .returning(*webhook_logs.c)
        )
        return WebhookExecutionLog.model_validate(self.execute_returning(stmt))

    def logs(self, webhook_id: str, limit: int = 50) -> List[WebhookExecutionLog]:
        stmt = (
            select(webhook_logs)
            .where(webhook_logs.c.webhook_id == webhook_id)
            .order_by(webhook_logs.c.executed_at.desc())
            .limit(limit)
        )
        return [WebhookExecutionLog.model_validate(row) for row in self.fetch_all(stmt)]
