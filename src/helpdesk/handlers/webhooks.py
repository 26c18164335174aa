"""Webhook administration routes (staff only)."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    api_handler,
    int_query_param,
    json_response,
    parse_body,
    path_param,
    require_staff,
)
from helpdesk.models.response import ApiResponse
from helpdesk.models.webhook import WebhookDraft, WebhookUpdate


@api_handler
def list_webhooks(event, context):
    require_staff(event)
    return json_response(200, get_container().webhooks.list())


@api_handler
def create_webhook(event, context):
    require_staff(event)
    draft = WebhookDraft.model_validate(parse_body(event))
    return json_response(201, get_container().webhooks.create(draft))


@api_handler
def update_webhook(event, context):
    require_staff(event)
    update = WebhookUpdate.model_validate(parse_body(event))
    return json_response(200, get_container().webhooks.update(path_param(event, "id"), update))


@api_handler
def delete_webhook(event, context):
    require_staff(event)
    webhook_id = path_param(event, "id")
    get_container().webhooks.delete(webhook_id)
    return json_response(200, ApiResponse(message="Webhook deleted", data={"id": webhook_id}))


@api_handler
def webhook_logs(event, context):
    require_staff(event)
    logs = get_container().webhooks.logs(
        path_param(event, "id"), limit=int_query_param(event, "limit", 50, maximum=500)
    )
    return json_response(200, logs)
