"""
AI responder tests with a mocked Bedrock runtime client.

Run with: pytest tests/unit/test_ai_service.py -v
"""

from unittest.mock import MagicMock, patch

from botocore.exceptions import ReadTimeoutError

from helpdesk.models.chat import ChatTurn
from helpdesk.models.ticket import TicketPriority
from helpdesk.services.ai_service import (
    EMPTY_REPLY,
    ERROR_REPLY,
    NO_KNOWLEDGE_HINT,
    NOT_CONFIGURED_REPLY,
    AIService,
    to_converse_messages,
)


def _reply(text):
    return {"output": {"message": {"role": "assistant", "content": [{"text": text}]}}}


def _turns(*pairs):
    return [ChatTurn(role=role, content=content) for role, content in pairs]


class TestConverseMapping:

    def test_roles_are_mapped_and_merged(self):
        system, messages = to_converse_messages(
            _turns(
                ("assistant", "Olá! Como posso ajudar?"),
                ("user", "Não consigo entrar"),
                ("user", "Aparece erro 403"),
                ("model", "Você já tentou redefinir a senha?"),
                ("system", "Responda de forma curta"),
                ("user", "Sim"),
            )
        )

        assert system == ["Responda de forma curta"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assert messages[0]["content"][0]["text"] == "Não consigo entrar\n\nAparece erro 403"

    def test_blank_turns_are_ignored(self):
        _, messages = to_converse_messages(_turns(("user", "  "), ("user", "Oi")))
        assert messages == [{"role": "user", "content": [{"text": "Oi"}]}]


class TestGenerateResponse:

    def test_returns_model_text(self):
        client = MagicMock()
        client.converse.return_value = _reply("  Tente limpar o cache.  ")
        service = AIService(client=client, brand_name="Acme")

        reply = service.generate_response(_turns(("user", "Erro 500")), knowledge_context="KB")

        assert reply == "Tente limpar o cache."
        kwargs = client.converse.call_args.kwargs
        assert "Acme" in kwargs["system"][0]["text"]
        assert kwargs["system"][0]["text"].endswith("KB")
        assert kwargs["inferenceConfig"] == {"maxTokens": 500, "temperature": 0.7}

    def test_without_knowledge_uses_hint(self):
        client = MagicMock()
        client.converse.return_value = _reply("Ok")
        AIService(client=client).generate_response(_turns(("user", "Erro")))
        assert NO_KNOWLEDGE_HINT in client.converse.call_args.kwargs["system"][0]["text"]

    def test_disabled_service_returns_fixed_text(self):
        client = MagicMock()
        reply = AIService(enabled=False, client=client).generate_response(_turns(("user", "Oi")))
        assert reply == NOT_CONFIGURED_REPLY
        client.converse.assert_not_called()

    def test_empty_model_output(self):
        client = MagicMock()
        client.converse.return_value = _reply("   ")
        assert AIService(client=client).generate_response(_turns(("user", "Oi"))) == EMPTY_REPLY

    def test_provider_error_never_raises(self):
        client = MagicMock()
        client.converse.side_effect = RuntimeError("throttled")
        assert AIService(client=client).generate_response(_turns(("user", "Oi"))) == ERROR_REPLY

    def test_timeout_never_raises(self):
        client = MagicMock()
        client.converse.side_effect = ReadTimeoutError(endpoint_url="https://bedrock.example")
        assert AIService(client=client).generate_response(_turns(("user", "Oi"))) == ERROR_REPLY

    @patch("helpdesk.services.ai_service.boto3")
    def test_client_is_created_lazily(self, mock_boto3):
        service = AIService(region="us-east-1", timeout_seconds=12)
        mock_boto3.client.assert_not_called()

        service.client
        args, kwargs = mock_boto3.client.call_args
        assert args == ("bedrock-runtime",)
        assert kwargs["region_name"] == "us-east-1"


class TestAnalyzeTicket:

    def test_parses_json_from_model(self):
        client = MagicMock()
        client.converse.return_value = _reply(
            'Claro! {"category": "Acesso", "priority": "high", '
            '"suggestedResponse": "Vamos redefinir sua senha."}'
        )

        analysis = AIService(client=client).analyze_ticket("Sem acesso", "Senha inválida")

        assert analysis.category == "Acesso"
        assert analysis.priority == TicketPriority.HIGH
        assert analysis.suggested_response == "Vamos redefinir sua senha."
        assert client.converse.call_args.kwargs["inferenceConfig"] == {"maxTokens": 300, "temperature": 0.3}

    def test_unknown_category_becomes_outro(self):
        client = MagicMock()
        client.converse.return_value = _reply(
            '{"category": "Marketing", "priority": "low", "suggested_response": "Ok"}'
        )
        assert AIService(client=client).analyze_ticket("t", "d").category == "Outro"

    def test_garbage_output_falls_back(self):
        client = MagicMock()
        client.converse.return_value = _reply("não sei")

        analysis = AIService(client=client).analyze_ticket("t", "d")

        assert analysis.category == "Outro"
        assert analysis.priority == TicketPriority.MEDIUM
        assert analysis.suggested_response.startswith("Obrigado")

    def test_disabled_service_falls_back(self):
        analysis = AIService(enabled=False, client=MagicMock()).analyze_ticket("t", "d")
        assert analysis.suggested_response == "Aguarde, um atendente irá responder em breve."
