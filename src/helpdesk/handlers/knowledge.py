"""Knowledge base routes."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    api_handler,
    bool_query_param,
    json_response,
    parse_body,
    path_param,
    query_param,
    require_staff,
)
from helpdesk.models.knowledge import KnowledgeDraft, KnowledgeUpdate
from helpdesk.models.response import ApiResponse


@api_handler
def list_knowledge(event, context):
    require_staff(event)
    service = get_container().knowledge
    category = query_param(event, "category")
    product = query_param(event, "product")
    if category:
        entries = service.by_category(category)
    elif product:
        entries = service.by_product(product)
    else:
        entries = service.list(active_only=bool_query_param(event, "active_only"))
    return json_response(200, entries)


@api_handler
def search_knowledge(event, context):
    """GET /knowledge/search?q=...&product=..."""
    entries = get_container().knowledge.search(
        query_param(event, "q", "") or "", product=query_param(event, "product")
    )
    return json_response(200, entries)


@api_handler
def create_knowledge(event, context):
    require_staff(event)
    draft = KnowledgeDraft.model_validate(parse_body(event))
    return json_response(201, get_container().knowledge.create(draft))


@api_handler
def update_knowledge(event, context):
    require_staff(event)
    update = KnowledgeUpdate.model_validate(parse_body(event))
    return json_response(200, get_container().knowledge.update(path_param(event, "id"), update))


@api_handler
def delete_knowledge(event, context):
    require_staff(event)
    entry_id = path_param(event, "id")
    get_container().knowledge.delete(entry_id)
    return json_response(200, ApiResponse(message="Knowledge entry deleted", data={"id": entry_id}))
