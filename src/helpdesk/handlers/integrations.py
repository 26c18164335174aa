"""Inbound channel routes: Instagram webhook and inbound email."""

from __future__ import annotations

import hmac

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    api_handler,
    header,
    json_response,
    parse_body,
    query_param,
    text_response,
)
from helpdesk.models.channel import InboundEmail
from helpdesk.services.ingestion_service import (
    parse_instagram_webhook,
    verify_instagram_subscription,
)
from helpdesk.utils.error_handling import ForbiddenError


@api_handler
def verify_instagram(event, context):
    """GET /integrations/instagram/webhook: Meta subscription handshake."""
    challenge = verify_instagram_subscription(
        query_param(event, "hub.mode"),
        query_param(event, "hub.verify_token"),
        query_param(event, "hub.challenge"),
        get_container().settings.instagram_verify_token,
    )
    if challenge is None:
        raise ForbiddenError("Instagram verification failed")
    return text_response(200, challenge)


@api_handler
def receive_instagram(event, context):
    """POST /integrations/instagram/webhook."""
    ingestion = get_container().ingestion
    results = [ingestion.ingest_instagram_dm(dm) for dm in parse_instagram_webhook(parse_body(event))]
    return json_response(200, {"processed": len(results), "results": results})


@api_handler
def receive_email(event, context):
    """POST /integrations/email/inbound, guarded by a shared token when one is configured."""
    expected = get_container().settings.inbound_email_token
    if expected:
        provided = header(event, "X-Inbound-Token") or ""
        if not hmac.compare_digest(provided, expected):
            raise ForbiddenError("Invalid inbound token")
    email = InboundEmail.model_validate(parse_body(event))
    result = get_container().ingestion.ingest_email(email)
    return json_response(201 if result.created_ticket else 200, result)
