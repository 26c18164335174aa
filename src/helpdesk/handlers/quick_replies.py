"""Quick reply routes (staff only)."""

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
from helpdesk.models.quick_reply import QuickReplyDraft, QuickReplyUpdate
from helpdesk.models.response import ApiResponse
from helpdesk.utils.error_handling import NotFoundError


@api_handler
def list_quick_replies(event, context):
    """GET /quick-replies?include_inactive=true"""
    require_staff(event)
    active_only = not bool_query_param(event, "include_inactive")
    return json_response(200, get_container().quick_replies.list(active_only=active_only))


@api_handler
def quick_reply_categories(event, context):
    require_staff(event)
    return json_response(200, get_container().quick_replies.categories())


@api_handler
def quick_reply_by_shortcut(event, context):
    require_staff(event)
    shortcut = path_param(event, "shortcut")
    reply = get_container().quick_replies.by_shortcut(shortcut)
    if reply is None:
        raise NotFoundError(f"No active quick reply for {shortcut}")
    return json_response(200, reply)


@api_handler
def create_quick_reply(event, context):
    staff_id = require_staff(event)
    draft = QuickReplyDraft.model_validate(parse_body(event))
    return json_response(201, get_container().quick_replies.create(draft, created_by=staff_id))


@api_handler
def update_quick_reply(event, context):
    require_staff(event)
    update = QuickReplyUpdate.model_validate(parse_body(event))
    return json_response(200, get_container().quick_replies.update(path_param(event, "id"), update))


@api_handler
def delete_quick_reply(event, context):
    require_staff(event)
    reply_id = path_param(event, "id")
    get_container().quick_replies.delete(reply_id)
    return json_response(200, ApiResponse(message="Quick reply deleted", data={"id": reply_id}))
