"""AI feedback routes (staff only)."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    api_handler,
    int_query_param,
    json_response,
    parse_body,
    path_param,
    query_param,
    require_staff,
)
from helpdesk.models.feedback import FeedbackDraft, FeedbackUpdate
from helpdesk.models.response import ApiResponse


@api_handler
def submit_feedback(event, context):
    user_id = require_staff(event)
    draft = FeedbackDraft.model_validate(parse_body(event))
    feedback = get_container().feedback.submit(
        draft.ticket_id, draft.message_id, draft.rating, comment=draft.comment, user_id=user_id
    )
    return json_response(201, feedback)


@api_handler
def list_feedback(event, context):
    """GET /feedback, filtered by ``ticket_id`` or a comma-separated ``message_ids``."""
    require_staff(event)
    service = get_container().feedback
    ticket_id = query_param(event, "ticket_id")
    message_ids = query_param(event, "message_ids")
    if ticket_id:
        return json_response(200, service.by_ticket(ticket_id))
    if message_ids:
        ids = [item.strip() for item in message_ids.split(",") if item.strip()]
        return json_response(200, service.by_messages(ids))
    return json_response(200, service.list(limit=int_query_param(event, "limit", 100, maximum=1000)))


@api_handler
def feedback_stats(event, context):
    require_staff(event)
    days = int_query_param(event, "days", 30, maximum=365)
    return json_response(200, get_container().feedback.stats(days=days))


@api_handler
def update_feedback(event, context):
    require_staff(event)
    update = FeedbackUpdate.model_validate(parse_body(event))
    return json_response(200, get_container().feedback.update(path_param(event, "id"), update))


@api_handler
def delete_feedback(event, context):
    require_staff(event)
    feedback_id = path_param(event, "id")
    get_container().feedback.delete(feedback_id)
    return json_response(200, ApiResponse(message="Feedback deleted", data={"id": feedback_id}))
