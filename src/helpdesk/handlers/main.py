"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

Why one Lambda?
- Keeps the engine pool and knowledge cache warm across routes.
- Simpler to deploy while still keeping code organized by delegating to modules.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from . import (
    categories,
    chat,
    feedback,
    health_check,
    integrations,
    knowledge,
    messages,
    quick_replies,
    tickets,
    webhooks,
)
from .http_utils import json_response


class Route(NamedTuple):
    method: str
    path: str
    handler: Callable
    pattern: "re.Pattern"

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


def _route(method: str, path: str, handler: Callable) -> Route:
    regex = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", path)
    return Route(method, path, handler, re.compile(f"^{regex}$"))


# Literal paths come before parameterised siblings (/tickets/stats before /tickets/{id}).
ROUTES: List[Route] = [
    _route("GET", "/health", health_check.lambda_handler),
    _route("POST", "/tickets", tickets.create_ticket),
    _route("GET", "/tickets", tickets.list_tickets),
    _route("GET", "/tickets/stats", tickets.ticket_stats),
    _route("POST", "/tickets/analyze", tickets.analyze_ticket),
    _route("GET", "/tickets/{id}", tickets.get_ticket),
    _route("PATCH", "/tickets/{id}", tickets.update_ticket),
    _route("DELETE", "/tickets/{id}", tickets.delete_ticket),
    _route("GET", "/tickets/{id}/messages", messages.list_messages),
    _route("POST", "/tickets/{id}/messages", messages.create_message),
    _route("DELETE", "/messages/{id}", messages.delete_message),
    _route("POST", "/chat", chat.chat),
    _route("GET", "/webhooks", webhooks.list_webhooks),
    _route("POST", "/webhooks", webhooks.create_webhook),
    _route("PATCH", "/webhooks/{id}", webhooks.update_webhook),
    _route("DELETE", "/webhooks/{id}", webhooks.delete_webhook),
    _route("GET", "/webhooks/{id}/logs", webhooks.webhook_logs),
    _route("GET", "/knowledge", knowledge.list_knowledge),
    _route("POST", "/knowledge", knowledge.create_knowledge),
    _route("GET", "/knowledge/search", knowledge.search_knowledge),
    _route("PATCH", "/knowledge/{id}", knowledge.update_knowledge),
    _route("DELETE", "/knowledge/{id}", knowledge.delete_knowledge),
    _route("POST", "/feedback", feedback.submit_feedback),
    _route("GET", "/feedback", feedback.list_feedback),
    _route("GET", "/feedback/stats", feedback.feedback_stats),
    _route("PATCH", "/feedback/{id}", feedback.update_feedback),
    _route("DELETE", "/feedback/{id}", feedback.delete_feedback),
    _route("GET", "/quick-replies", quick_replies.list_quick_replies),
    _route("POST", "/quick-replies", quick_replies.create_quick_reply),
    _route("GET", "/quick-replies/categories", quick_replies.quick_reply_categories),
    _route("GET", "/quick-replies/shortcut/{shortcut}", quick_replies.quick_reply_by_shortcut),
    _route("PATCH", "/quick-replies/{id}", quick_replies.update_quick_reply),
    _route("DELETE", "/quick-replies/{id}", quick_replies.delete_quick_reply),
    _route("GET", "/categories", categories.list_categories),
    _route("POST", "/categories", categories.create_category),
    _route("PUT", "/categories/order", categories.reorder_categories),
    _route("PATCH", "/categories/{id}", categories.update_category),
    _route("DELETE", "/categories/{id}", categories.delete_category),
    _route("GET", "/integrations/instagram/webhook", integrations.verify_instagram),
    _route("POST", "/integrations/instagram/webhook", integrations.receive_instagram),
    _route("POST", "/integrations/email/inbound", integrations.receive_email),
]


def resolve(event: Dict) -> Tuple[Optional[Route], Dict[str, str]]:
    """Find the route for an event and the path parameters it binds."""
    route_key = event.get("routeKey")
    for route in ROUTES:
        if route_key == route.key:
            return route, dict(event.get("pathParameters") or {})

    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method", "").upper()
    path = http.get("path") or event.get("rawPath", "")
    if len(path) > 1:
        path = path.rstrip("/")
    for route in ROUTES:
        if route.method != method:
            continue
        match = route.pattern.match(path)
        if match:
            return route, match.groupdict()
    return None, {}


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    Uses ``routeKey`` when the API defines explicit routes and falls back to
    matching method and path for ``$default`` or proxied requests.
    """
    route, params = resolve(event)
    if route is None:
        http = event.get("requestContext", {}).get("http", {})
        route_key = f"{http.get('method', '').upper()} {http.get('path', '')}"
        return json_response(404, {"message": "Route not found", "route": route_key})

    event["pathParameters"] = {**(event.get("pathParameters") or {}), **params}
    return route.handler(event, context)
