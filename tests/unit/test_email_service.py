"""Transactional email tests with a mocked HTTP session."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from helpdesk.models.ticket import Ticket
from helpdesk.services.email_service import RESEND_API_URL, EmailNotificationService, format_datetime
from helpdesk.utils.error_handling import IntegrationError


def _ticket(**overrides):
    now = datetime(2025, 3, 5, 14, 30, tzinfo=timezone.utc)
    values = {
        "id": "0f8c2a1e-1111-2222-3333-444455556666",
        "title": "Erro <script>",
        "description": "Senha não funciona",
        "category": "Acesso",
        "status": "resolved",
        "customer_name": "Maria",
        "customer_email": "maria@example.com",
        "resolution": "Senha redefinida",
        "created_at": now,
        "updated_at": now,
        "resolved_at": now,
    }
    values.update(overrides)
    return Ticket(**values)


@pytest.fixture
def session():
    session = MagicMock()
    session.post.return_value = MagicMock(status_code=200, json=MagicMock(return_value={"id": "email-1"}))
    return session


def _service(session, api_key="re_test"):
    return EmailNotificationService(
        api_key=api_key,
        from_email="suporte@example.com",
        from_name="Suporte",
        app_url="https://app.example.com/",
        brand_name="Acme",
        session=session,
    )


def test_format_datetime():
    assert format_datetime(datetime(2025, 3, 5, 14, 30, tzinfo=timezone.utc)) == "05/03/2025 14:30"


def test_ticket_resolved_email(session):
    email_id = _service(session).send_ticket_resolved(_ticket())

    assert email_id == "email-1"
    args, kwargs = session.post.call_args
    assert args[0] == RESEND_API_URL
    assert kwargs["headers"] == {"Authorization": "Bearer re_test"}
    payload = kwargs["json"]
    assert payload["from"] == "Suporte <suporte@example.com>"
    assert payload["to"] == ["maria@example.com"]
    assert payload["subject"] == 'Seu ticket "Erro <script>" foi resolvido'
    assert "Erro &lt;script&gt;" in payload["html"]
    assert "<script>" not in payload["html"]
    assert "#0F8C2A1E" in payload["text"]
    assert "Resolvido em: 05/03/2025 14:30" in payload["text"]
    assert "https://app.example.com/tickets/0f8c2a1e-1111-2222-3333-444455556666" in payload["text"]


def test_staff_reply_email(session):
    _service(session).send_staff_reply(_ticket(), "Pode tentar de novo?", author_name="Ana")

    payload = session.post.call_args.kwargs["json"]
    assert payload["subject"] == 'Nova resposta no ticket "Erro <script>"'
    assert "Ana respondeu ao seu ticket" in payload["html"]
    assert "Pode tentar de novo?" in payload["text"]
    assert {"name": "category", "value": "admin-reply"} in payload["tags"]


def test_no_customer_email_sends_nothing(session):
    assert _service(session).send_ticket_resolved(_ticket(customer_email=None)) is None
    session.post.assert_not_called()


def test_unconfigured_provider_is_skipped(session):
    assert _service(session, api_key=None).send_staff_reply(_ticket(), "Oi") is None
    session.post.assert_not_called()


def test_provider_error_raises_integration_error(session):
    session.post.return_value = MagicMock(status_code=422, text="invalid from")
    with pytest.raises(IntegrationError):
        _service(session).send_ticket_resolved(_ticket())


def test_network_error_raises_integration_error(session):
    session.post.side_effect = requests.ConnectionError("dns failure")
    with pytest.raises(IntegrationError):
        _service(session).send_ticket_resolved(_ticket())
