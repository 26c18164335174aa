"""Ticket category routes. Listing is public so the ticket form can use it."""

from __future__ import annotations

from helpdesk.handlers.dependencies import get_container
from helpdesk.handlers.http_utils import (
    api_handler,
    bool_query_param,
    json_response,
    parse_body,
    path_param,
    require_staff,
)
from helpdesk.models.category import CategoryDraft, CategoryOrder, CategoryUpdate
from helpdesk.models.response import ApiResponse


@api_handler
def list_categories(event, context):
    """GET /categories; ``include_inactive=true`` is honoured for staff only."""
    include_inactive = bool_query_param(event, "include_inactive")
    if include_inactive:
        require_staff(event)
    return json_response(200, get_container().categories.list(active_only=not include_inactive))


@api_handler
def create_category(event, context):
    require_staff(event)
    draft = CategoryDraft.model_validate(parse_body(event))
    return json_response(201, get_container().categories.create(draft))


@api_handler
def update_category(event, context):
    require_staff(event)
    update = CategoryUpdate.model_validate(parse_body(event))
    return json_response(200, get_container().categories.update(path_param(event, "id"), update))


@api_handler
def reorder_categories(event, context):
    """PUT /categories/order with ``{"category_ids": [...]}`` in display order."""
    require_staff(event)
    order = CategoryOrder.model_validate(parse_body(event))
    return json_response(200, get_container().categories.reorder(order.category_ids))


@api_handler
def delete_category(event, context):
    require_staff(event)
    category_id = path_param(event, "id")
    get_container().categories.delete(category_id)
    return json_response(200, ApiResponse(message="Category deleted", data={"id": category_id}))
