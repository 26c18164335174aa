"""Request/response helpers shared by the HTTP handlers."""

from __future__ import annotations

import base64
import functools
import json
import time
import uuid
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from helpdesk.utils.error_handling import AppError, ForbiddenError, ValidationError, to_response
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

STAFF_ROLES = frozenset({"admin", "staff"})


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    return value


def json_response(status: int, body: Any) -> Dict[str, Any]:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(_jsonable(body), ensure_ascii=False),
    }


def text_response(status: int, body: str) -> Dict[str, Any]:
    return {"statusCode": status, "headers": {"Content-Type": "text/plain"}, "body": body}


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the JSON body; anything but a JSON object is rejected."""
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ValidationError(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def path_param(event: Dict[str, Any], name: str) -> str:
    value = (event.get("pathParameters") or {}).get(name)
    if not value:
        raise ValidationError(f"Missing path parameter: {name}")
    return value


def query_param(event: Dict[str, Any], name: str, default: Optional[str] = None) -> Optional[str]:
    return (event.get("queryStringParameters") or {}).get(name, default)


def int_query_param(event: Dict[str, Any], name: str, default: int, maximum: Optional[int] = None) -> int:
    raw = query_param(event, name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValidationError(f"{name} must not be negative")
    return min(value, maximum) if maximum is not None else value


def bool_query_param(event: Dict[str, Any], name: str, default: bool = False) -> bool:
    raw = query_param(event, name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


def header(event: Dict[str, Any], name: str) -> Optional[str]:
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def claims(event: Dict[str, Any]) -> Dict[str, Any]:
    """JWT claims placed on the request by the API Gateway authorizer."""
    authorizer = event.get("requestContext", {}).get("authorizer") or {}
    return (authorizer.get("jwt") or {}).get("claims") or {}


def actor_id(event: Dict[str, Any]) -> Optional[str]:
    return claims(event).get("sub")


def actor_name(event: Dict[str, Any]) -> Optional[str]:
    found = claims(event)
    return found.get("name") or found.get("email")


def is_staff(event: Dict[str, Any]) -> bool:
    found = claims(event)
    role = found.get("custom:role") or found.get("role")
    return bool(found.get("sub")) and role in STAFF_ROLES


def require_staff(event: Dict[str, Any]) -> str:
    """Return the staff user's id or raise ForbiddenError."""
    if not is_staff(event):
        raise ForbiddenError()
    return actor_id(event)


def api_handler(func: Callable) -> Callable:
    """Map errors to JSON responses and log every request with a correlation id."""

    @functools.wraps(func)
    def wrapper(event, context):
        start = time.perf_counter()
        correlation_id = str(uuid.uuid4())
        route = event.get("routeKey") or func.__name__
        try:
            response = func(event, context)
        except AppError as exc:
            response = to_response(exc, correlation_id)
            logger.warning(
                "Request failed",
                extra={"correlation_id": correlation_id, "route": route, "error": str(exc)},
            )
        except PydanticValidationError as exc:
            response = to_response(ValidationError(_describe(exc)), correlation_id)
            logger.warning(
                "Request validation failed",
                extra={"correlation_id": correlation_id, "route": route, "error": _describe(exc)},
            )
        except Exception:
            logger.exception(
                "Unhandled error", extra={"correlation_id": correlation_id, "route": route}
            )
            response = to_response(AppError("Internal server error", 500), correlation_id)

        logger.info(
            "Request handled",
            extra={
                "correlation_id": correlation_id,
                "route": route,
                "status_code": response["statusCode"],
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return response

    return wrapper


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid input"
