"""AI chat widget route."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import api_handler, json_response, parse_body
from helpdesk.models.chat import ChatRequest


@api_handler
def chat(event, context):
    """POST /chat."""
    request = ChatRequest.model_validate(parse_body(event))
    reply = get_container().chat.respond(
        request.messages, ticket_id=request.ticket_id, product=request.product
    )
    return json_response(200, reply)
