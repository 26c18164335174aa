"""
HTTP handler tests through the routing Lambda.

The container fixture is installed with ``set_container`` so handlers use
the SQLite database and mocked integrations.

Run with: pytest tests/unit/test_handlers.py -v
"""

import base64
import json

from conftest import api_event
from helpdesk.handlers import main


def _call(event):
    response = main.lambda_handler(event, None)
    body = response["body"]
    if response["headers"]["Content-Type"] == "application/json":
        body = json.loads(body)
    return response["statusCode"], body


def _create_ticket(**overrides):
    payload = {
        "title": "Não consigo acessar",
        "description": "Erro 500 na aula 3",
        "customer_email": "maria@example.com",
    }
    payload.update(overrides)
    status, body = _call(api_event("POST", "/tickets", body=payload))
    assert status == 201
    return body


class TestTickets:

    def test_public_ticket_creation(self, api):
        body = _create_ticket()
        assert body["status"] == "open"
        assert body["version"] == 1
        assert body["user_id"] is None

    def test_invalid_payload_is_422(self, api):
        status, body = _call(api_event("POST", "/tickets", body={"title": "", "description": "x"}))
        assert status == 422
        assert body["status"] == "error"
        assert "correlation_id" in body
        assert body["user_message"]

    def test_body_must_be_an_object(self, api):
        event = api_event("POST", "/tickets")
        event["body"] = "[1, 2]"
        status, _ = _call(event)
        assert status == 422

    def test_base64_body(self, api):
        event = api_event("POST", "/tickets")
        event["body"] = base64.b64encode(
            json.dumps({"title": "Erro", "description": "Detalhe"}).encode("utf-8")
        ).decode("ascii")
        event["isBase64Encoded"] = True
        status, body = _call(event)
        assert status == 201
        assert body["title"] == "Erro"

    def test_list_requires_staff(self, api):
        status, body = _call(api_event("GET", "/tickets"))
        assert status == 403
        status, body = _call(api_event("GET", "/tickets", role="customer"))
        assert status == 403

    def test_staff_list_and_stats(self, api):
        _create_ticket()
        status, body = _call(api_event("GET", "/tickets", role="staff", query={"status": "open"}))
        assert status == 200
        assert len(body) == 1

        status, body = _call(api_event("GET", "/tickets/stats", role="admin"))
        assert status == 200
        assert body["total"] == 1
        assert body["open"] == 1

    def test_unknown_status_filter(self, api):
        status, _ = _call(api_event("GET", "/tickets", role="staff", query={"status": "archived"}))
        assert status == 422

    def test_get_missing_ticket_is_404(self, api):
        status, body = _call(api_event("GET", "/tickets/nope"))
        assert status == 404
        assert body["message"] == "Ticket nope not found"

    def test_update_with_version(self, api):
        ticket = _create_ticket()
        path = f"/tickets/{ticket['id']}"

        status, body = _call(api_event("PATCH", path, role="staff", body={"status": "in_progress", "version": 1}))
        assert status == 200
        assert body["version"] == 2

        status, body = _call(api_event("PATCH", path, role="staff", body={"priority": "high", "version": 1}))
        assert status == 409
        assert body["current_version"] == 2

    def test_update_rejects_unknown_fields(self, api):
        ticket = _create_ticket()
        status, _ = _call(
            api_event("PATCH", f"/tickets/{ticket['id']}", role="staff", body={"version": 1, "id": "x"})
        )
        assert status == 422

    def test_update_requires_staff(self, api):
        ticket = _create_ticket()
        status, _ = _call(api_event("PATCH", f"/tickets/{ticket['id']}", body={"status": "closed"}))
        assert status == 403

    def test_delete(self, api):
        ticket = _create_ticket()
        status, body = _call(api_event("DELETE", f"/tickets/{ticket['id']}", role="staff"))
        assert status == 200
        assert body["data"]["id"] == ticket["id"]

    def test_analyze(self, api, ai_client):
        ai_client.converse.return_value = {
            "output": {"message": {"content": [{"text": '{"category": "Técnico", "priority": "urgent", "suggested_response": "Ok"}'}]}}
        }
        status, body = _call(api_event("POST", "/tickets/analyze", body={"title": "Erro", "description": "Caiu"}))
        assert status == 200
        assert body["category"] == "Técnico"
        assert body["priority"] == "urgent"


class TestMessagesAndChat:

    def test_customer_and_staff_messages(self, api):
        ticket = _create_ticket()
        path = f"/tickets/{ticket['id']}/messages"

        status, customer = _call(api_event("POST", path, body={"content": "Alguma novidade?", "is_ai": True}))
        assert status == 201
        assert customer["is_ai"] is False
        assert customer["user_id"] is None

        status, staff = _call(api_event("POST", path, role="staff", body={"content": "Estamos verificando."}))
        assert status == 201
        assert staff["user_id"] == "staff-1"

        status, listed = _call(api_event("GET", path))
        assert status == 200
        assert [item["id"] for item in listed] == [customer["id"], staff["id"]]

    def test_chat(self, api):
        ticket = _create_ticket()
        status, body = _call(
            api_event(
                "POST",
                "/chat",
                body={"messages": [{"role": "user", "content": "Oi"}], "ticket_id": ticket["id"]},
            )
        )
        assert status == 200
        assert body["reply"] == "Olá! Tente limpar o cache do navegador."
        assert body["message_id"]

    def test_chat_requires_user_turn(self, api):
        status, _ = _call(api_event("POST", "/chat", body={"messages": []}))
        assert status == 422


class TestAdminRoutes:

    def test_webhook_lifecycle(self, api):
        status, created = _call(
            api_event(
                "POST",
                "/webhooks",
                role="admin",
                body={"name": "CRM", "url": "https://crm.example.com/hook", "events": ["ticket_created"]},
            )
        )
        assert status == 201

        status, updated = _call(
            api_event("PATCH", f"/webhooks/{created['id']}", role="admin", body={"active": False})
        )
        assert status == 200
        assert updated["active"] is False

        status, logs = _call(api_event("GET", f"/webhooks/{created['id']}/logs", role="admin"))
        assert status == 200
        assert logs == []

    def test_webhook_private_url_rejected(self, api):
        status, body = _call(
            api_event(
                "POST",
                "/webhooks",
                role="admin",
                body={"name": "Local", "url": "http://127.0.0.1:9000", "events": ["ticket_created"]},
            )
        )
        assert status == 422
        assert "private" in body["message"]

    def test_knowledge_create_and_public_search(self, api):
        status, _ = _call(
            api_event(
                "POST",
                "/knowledge",
                role="staff",
                body={"title": "Boleto", "category": "Financeiro", "content": "Gere a segunda via.", "keywords": ["boleto"]},
            )
        )
        assert status == 201

        status, results = _call(api_event("GET", "/knowledge/search", query={"q": "boleto vencido"}))
        assert status == 200
        assert [item["title"] for item in results] == ["Boleto"]

    def test_feedback_flow(self, api):
        ticket = _create_ticket()
        ai_message = api.messages.create(ticket["id"], "Resposta da IA", is_ai=True)

        status, _ = _call(
            api_event(
                "POST",
                "/feedback",
                role="staff",
                body={"ticket_id": ticket["id"], "message_id": ai_message.id, "rating": "positive"},
            )
        )
        assert status == 201

        status, stats = _call(api_event("GET", "/feedback/stats", role="staff"))
        assert status == 200
        assert stats["positive_rate"] == 100

        status, by_message = _call(
            api_event("GET", "/feedback", role="staff", query={"message_ids": ai_message.id})
        )
        assert status == 200
        assert by_message[ai_message.id]["rating"] == "positive"

    def test_quick_reply_routes(self, api):
        status, created = _call(
            api_event(
                "POST",
                "/quick-replies",
                role="staff",
                body={"title": "Reset de senha", "shortcut": "senha", "content": "Use o link Esqueci minha senha."},
            )
        )
        assert status == 201
        assert created["shortcut"] == "/senha"
        assert created["created_by"] == "staff-1"

        status, found = _call(api_event("GET", "/quick-replies/shortcut/senha", role="staff"))
        assert status == 200
        assert found["id"] == created["id"]

        status, _ = _call(api_event("GET", "/quick-replies/shortcut/nada", role="staff"))
        assert status == 404

        status, names = _call(api_event("GET", "/quick-replies/categories", role="staff"))
        assert names == ["Geral"]

        status, _ = _call(api_event("GET", "/quick-replies", role="customer"))
        assert status == 403

    def test_category_routes(self, api):
        ids = []
        for name in ("Acesso", "Financeiro"):
            status, created = _call(api_event("POST", "/categories", role="admin", body={"name": name}))
            assert status == 201
            ids.append(created["id"])

        status, ordered = _call(
            api_event("PUT", "/categories/order", role="admin", body={"category_ids": list(reversed(ids))})
        )
        assert status == 200
        assert [item["name"] for item in ordered] == ["Financeiro", "Acesso"]

        _call(api_event("PATCH", f"/categories/{ids[0]}", role="admin", body={"active": False}))

        status, public = _call(api_event("GET", "/categories"))
        assert status == 200
        assert [item["name"] for item in public] == ["Financeiro"]

        status, _ = _call(api_event("GET", "/categories", query={"include_inactive": "true"}))
        assert status == 403

        status, body = _call(api_event("POST", "/categories", role="admin", body={"name": "Acesso"}))
        assert status == 409
        assert body["user_message"] == "Já existe uma categoria com este nome."


class TestIntegrations:

    def test_instagram_verification(self, api, monkeypatch):
        monkeypatch.setattr(api, "settings", api.settings.__class__(instagram_verify_token="tok"))
        query = {"hub.mode": "subscribe", "hub.verify_token": "tok", "hub.challenge": "42"}

        status, body = _call(api_event("GET", "/integrations/instagram/webhook", query=query))
        assert status == 200
        assert body == "42"

        query["hub.verify_token"] = "wrong"
        status, _ = _call(api_event("GET", "/integrations/instagram/webhook", query=query))
        assert status == 403

    def test_instagram_messages(self, api):
        payload = {
            "object": "instagram",
            "entry": [{"messaging": [{"sender": {"id": "111"}, "message": {"mid": "a", "text": "Oi"}}]}],
        }
        status, body = _call(api_event("POST", "/integrations/instagram/webhook", body=payload))
        assert status == 200
        assert body["processed"] == 1
        assert body["results"][0]["created_ticket"] is True

    def test_inbound_email_token(self, api, monkeypatch):
        monkeypatch.setattr(api, "settings", api.settings.__class__(inbound_email_token="secret"))
        payload = {"message_id": "<m1@x>", "from": "ana@example.com", "subject": "Oi", "body": "Ajuda"}

        status, _ = _call(api_event("POST", "/integrations/email/inbound", body=payload))
        assert status == 403

        status, body = _call(
            api_event("POST", "/integrations/email/inbound", body=payload, headers={"x-inbound-token": "secret"})
        )
        assert status == 201
        assert body["created_ticket"] is True


class TestErrors:

    def test_unhandled_error_is_500(self, api, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(api.tickets, "stats", explode)
        status, body = _call(api_event("GET", "/tickets/stats", role="staff"))
        assert status == 500
        assert body["message"] == "Internal server error"
