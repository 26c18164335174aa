"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, Optional

# Generic pt-BR texts shown to end users; the technical message stays in `message`.
USER_MESSAGES = {
    400: "Não foi possível processar sua solicitação. Tente novamente.",
    403: "Você não tem permissão para realizar esta ação.",
    404: "O registro solicitado não foi encontrado.",
    409: "Este ticket foi modificado por outra pessoa. Atualize a página e tente novamente.",
    422: "Verifique os dados informados e tente novamente.",
    500: "Ocorreu um erro inesperado. Tente novamente em alguns instantes.",
    502: "Ocorreu um erro inesperado. Tente novamente em alguns instantes.",
}


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400, user_message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self._user_message = user_message

    @property
    def user_message(self) -> str:
        return self._user_message or USER_MESSAGES.get(self.status_code, USER_MESSAGES[400])


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class ConflictError(AppError):
    """Raised on a stale ticket version (callers re-read and retry) or a duplicate unique value."""

    def __init__(
        self,
        message: str = "Ticket was modified by another actor, refresh and retry",
        current_version: Optional[int] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message, status_code=409, user_message=user_message)
        self.current_version = current_version


class ForbiddenError(AppError):
    """Raised when a staff-only operation is called without a staff role."""

    def __init__(self, message: str = "Staff role required"):
        super().__init__(message, status_code=403)


class IntegrationError(AppError):
    """Webhook, email or AI failure. Never reaches a primary operation's caller."""

    def __init__(self, message: str = "Integration failure"):
        super().__init__(message, status_code=502)


def to_response(error: AppError, correlation_id: Optional[str] = None) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    body: Dict[str, Any] = {
        "message": str(error),
        "user_message": error.user_message,
        "status": "error",
    }
    if correlation_id:
        body["correlation_id"] = correlation_id
    if isinstance(error, ConflictError) and error.current_version is not None:
        body["current_version"] = error.current_version
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
