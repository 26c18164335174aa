"""Ticket conversation routes."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    actor_id,
    actor_name,
    api_handler,
    is_staff,
    json_response,
    parse_body,
    path_param,
    require_staff,
)
from helpdesk.models.message import MessageDraft
from helpdesk.models.response import ApiResponse


@api_handler
def list_messages(event, context):
    return json_response(200, get_container().messages.list(path_param(event, "id")))


@api_handler
def create_message(event, context):
    """
    POST /tickets/{id}/messages.

    Without staff claims the message is the customer's. ``is_ai`` is only
    honoured for staff callers.
    """
    draft = MessageDraft.model_validate(parse_body(event))
    staff = is_staff(event)
    message = get_container().messages.create(
        path_param(event, "id"),
        draft.content,
        author_id=actor_id(event) if staff else None,
        is_ai=draft.is_ai and staff,
        author_name=draft.author_name or (actor_name(event) if staff else None),
    )
    return json_response(201, message)


@api_handler
def delete_message(event, context):
    require_staff(event)
    message_id = path_param(event, "id")
    get_container().messages.delete(message_id)
    return json_response(200, ApiResponse(message="Message deleted", data={"id": message_id}))
