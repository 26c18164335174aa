"""Ticket routes."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    actor_id,
    api_handler,
    int_query_param,
    json_response,
    parse_body,
    path_param,
    query_param,
    require_staff,
)
from helpdesk.models.chat import AnalyzeRequest
from helpdesk.models.response import ApiResponse
from helpdesk.models.ticket import TicketDraft, TicketStatus, TicketUpdate
from helpdesk.utils.error_handling import ValidationError


@api_handler
def create_ticket(event, context):
    """POST /tickets (public form; staff identity recorded when present)."""
    draft = TicketDraft.model_validate(parse_body(event))
    ticket = get_container().tickets.create(draft, creator_id=actor_id(event))
    return json_response(201, ticket)


@api_handler
def list_tickets(event, context):
    require_staff(event)
    status = query_param(event, "status")
    try:
        status_filter = TicketStatus(status) if status else None
    except ValueError as exc:
        raise ValidationError(f"Unknown status: {status}") from exc
    tickets = get_container().tickets.list(
        status=status_filter,
        user_id=query_param(event, "user_id"),
        limit=int_query_param(event, "limit", 100, maximum=500),
        offset=int_query_param(event, "offset", 0),
    )
    return json_response(200, tickets)


@api_handler
def ticket_stats(event, context):
    require_staff(event)
    return json_response(200, get_container().tickets.stats(user_id=query_param(event, "user_id")))


@api_handler
def analyze_ticket(event, context):
    """POST /tickets/analyze: AI triage suggestion for a draft."""
    request = AnalyzeRequest.model_validate(parse_body(event))
    return json_response(200, get_container().ai.analyze_ticket(request.title, request.description))


@api_handler
def get_ticket(event, context):
    return json_response(200, get_container().tickets.get(path_param(event, "id")))


@api_handler
def update_ticket(event, context):
    """PATCH /tickets/{id}; an optional ``version`` field enables the stale-write check."""
    require_staff(event)
    body = parse_body(event)
    version = body.pop("version", None)
    if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
        raise ValidationError("version must be an integer")
    update = TicketUpdate.model_validate(body)
    ticket = get_container().tickets.update(path_param(event, "id"), update, expected_version=version)
    return json_response(200, ticket)


@api_handler
def delete_ticket(event, context):
    require_staff(event)
    ticket_id = path_param(event, "id")
    get_container().tickets.delete(ticket_id)
    return json_response(200, ApiResponse(message="Ticket deleted", data={"id": ticket_id}))
