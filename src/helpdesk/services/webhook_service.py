"""
Webhook dispatch and administration.

``WebhookDispatcher`` delivers one event to every active subscriber and
records one execution log per attempt. Delivery is best effort: there are
no retries and a failing subscriber never affects the others.
"""

from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests

from helpdesk.models.webhook import (
    WebhookConfig,
    WebhookDraft,
    WebhookExecutionLog,
    WebhookUpdate,
)
from helpdesk.repositories.webhook_repo import WebhookRepository
from helpdesk.utils.error_handling import NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger
from helpdesk.utils.validators import webhook_url_error

logger = get_logger(__name__)

# Response bodies are stored for debugging; keep rows small.
MAX_RESPONSE_BODY = 2000


class WebhookDispatcher:
    """Fan an event out to its subscribers concurrently."""

    def __init__(
        self,
        repository: WebhookRepository,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = 10,
        max_workers: int = 8,
        allow_http: bool = True,
    ):
        self.repository = repository
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.max_workers = max_workers
        self.allow_http = allow_http

    def trigger(self, event) -> List[WebhookExecutionLog]:
        """Deliver ``event`` to every active config subscribed to its type."""
        configs = self.repository.active_for_event(event.event_type)
        if not configs:
            logger.info(
                "No webhooks subscribed",
                extra={"event_type": event.event_type, "ticket_id": event.ticket_id},
            )
            return []

        body = json.dumps(event.to_payload())
        workers = max(1, min(self.max_workers, len(configs)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._deliver, config, event, body) for config in configs]
            return [future.result() for future in futures]

    def _deliver(self, config: WebhookConfig, event, body: str) -> WebhookExecutionLog:
        unsafe = webhook_url_error(config.url, allow_http=self.allow_http)
        if unsafe:
            logger.warning(
                "Webhook destination rejected",
                extra={"webhook_id": config.id, "reason": unsafe},
            )
            return self._log(config, event, 0, False, error_message=unsafe)

        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Signature": config.secret or "",
            "X-Event-Type": event.event_type,
        }
        start = time.perf_counter()
        try:
            response = self.session.post(
                config.url, data=body, headers=headers, timeout=self.timeout_seconds
            )
        except requests.RequestException as exc:
            logger.warning(
                "Webhook delivery failed",
                extra={"webhook_id": config.id, "event_type": event.event_type, "error": str(exc)},
            )
            return self._log(config, event, 0, False, error_message=str(exc))

        success = 200 <= response.status_code < 300
        logger.info(
            "Webhook delivered" if success else "Webhook rejected by subscriber",
            extra={
                "webhook_id": config.id,
                "event_type": event.event_type,
                "status_code": response.status_code,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return self._log(
            config,
            event,
            response.status_code,
            success,
            response_body=(response.text or "")[:MAX_RESPONSE_BODY],
        )

    def _log(
        self,
        config: WebhookConfig,
        event,
        status_code: int,
        success: bool,
        response_body: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> WebhookExecutionLog:
        return self.repository.add_log(
            webhook_id=config.id,
            event_type=event.event_type,
            ticket_id=event.ticket_id,
            status_code=status_code,
            success=success,
            response_body=response_body,
            error_message=error_message,
        )


class WebhookService:
    """Admin operations on webhook configs."""

    def __init__(self, repository: WebhookRepository, allow_http: bool = True):
        self.repository = repository
        self.allow_http = allow_http

    def _check_url(self, url: str) -> None:
        problem = webhook_url_error(url, allow_http=self.allow_http)
        if problem:
            raise ValidationError(problem)

    def create(self, draft: WebhookDraft) -> WebhookConfig:
        self._check_url(draft.url)
        config = self.repository.create(draft)
        logger.info("Webhook created", extra={"webhook_id": config.id})
        return config

    def list(self) -> List[WebhookConfig]:
        return self.repository.list()

    def get(self, webhook_id: str) -> WebhookConfig:
        config = self.repository.get(webhook_id)
        if config is None:
            raise NotFoundError(f"Webhook {webhook_id} not found")
        return config

    def update(self, webhook_id: str, update: WebhookUpdate) -> WebhookConfig:
        changes = update.changes()
        for field in ("name", "url", "events", "active"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if "url" in changes:
            changes["url"] = changes["url"].strip()
            self._check_url(changes["url"])
        if "events" in changes:
            changes["events"] = [event.value for event in changes["events"]]
        if not changes:
            return self.get(webhook_id)
        config = self.repository.update(webhook_id, changes)
        if config is None:
            raise NotFoundError(f"Webhook {webhook_id} not found")
        return config

    def toggle(self, webhook_id: str, active: bool) -> WebhookConfig:
        return self.update(webhook_id, WebhookUpdate(active=active))

    def delete(self, webhook_id: str) -> None:
        if not self.repository.delete(webhook_id):
            raise NotFoundError(f"Webhook {webhook_id} not found")
        logger.info("Webhook deleted", extra={"webhook_id": webhook_id})

    def logs(self, webhook_id: str, limit: int = 50) -> List[WebhookExecutionLog]:
        self.get(webhook_id)
        return self.repository.logs(webhook_id, limit=limit)
