"""
AI responder backed by Amazon Bedrock (Converse API).

Every public method degrades to a fixed Portuguese text instead of raising,
so a model outage never blocks the chat widget or ticket creation.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, List, Optional, Sequence

import boto3
from botocore.config import Config

from helpdesk.models.chat import ChatRole, ChatTurn, TicketAnalysis
from helpdesk.models.ticket import TicketPriority
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

NOT_CONFIGURED_REPLY = (
    "Desculpe, o serviço de IA não está configurado no momento. "
    "Por favor, aguarde o atendimento humano."
)
EMPTY_REPLY = "Desculpe, não consegui gerar uma resposta."
ERROR_REPLY = (
    "Desculpe, ocorreu um erro ao processar sua mensagem. "
    "Por favor, tente novamente ou aguarde um atendente humano."
)
NO_KNOWLEDGE_HINT = (
    "Não encontrei informações específicas sobre isso na base de conhecimento.\n"
    "Vou encaminhar sua dúvida para um atendente humano que poderá ajudá-lo melhor."
)

ANALYSIS_CATEGORIES = ("Técnico", "Dúvida", "Acesso", "Financeiro", "Sugestão", "Outro")

SYSTEM_PROMPT = (
    "Você é um assistente virtual especializado em atendimento ao cliente da {brand}.\n"
    "Seja educado, prestativo e profissional. Responda em português brasileiro.\n"
    "Use a base de conhecimento fornecida para dar respostas precisas.\n"
    "Se não souber a resposta, seja honesto e sugira que o cliente aguarde um atendente humano."
)

ANALYSIS_PROMPT = (
    "Analise o seguinte ticket de suporte e retorne um JSON com:\n"
    "1. category: uma das opções ({categories})\n"
    "2. priority: uma das opções (low, medium, high, urgent)\n"
    "3. suggested_response: uma resposta inicial útil\n\n"
    "Ticket:\nTítulo: {title}\nDescrição: {description}\n\n"
    "Retorne apenas o JSON, sem texto adicional."
)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def fallback_analysis(configured: bool = True) -> TicketAnalysis:
    suggested = (
        "Obrigado por entrar em contato. Estamos analisando seu ticket e responderemos em breve."
        if configured
        else "Aguarde, um atendente irá responder em breve."
    )
    return TicketAnalysis(
        category="Outro", priority=TicketPriority.MEDIUM, suggested_response=suggested
    )


def to_converse_messages(turns: Sequence[ChatTurn]) -> tuple[List[str], List[Dict[str, Any]]]:
    """
    Map widget turns onto Bedrock Converse messages.

    Returns ``(extra_system_texts, messages)``. Converse needs alternating
    roles starting with ``user``, so same-role turns are merged and leading
    assistant turns are dropped.
    """
    system_texts: List[str] = []
    messages: List[Dict[str, Any]] = []
    for turn in turns:
        content = (turn.content or "").strip()
        if not content:
            continue
        if turn.role == ChatRole.SYSTEM:
            system_texts.append(content)
            continue
        role = "user" if turn.role == ChatRole.USER else "assistant"
        if not messages and role == "assistant":
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"][0]["text"] += "\n\n" + content
        else:
            messages.append({"role": role, "content": [{"text": content}]})
    return system_texts, messages


class AIService:
    """Generate replies and ticket triage suggestions."""

    def __init__(
        self,
        model_id: str = "anthropic.claude-3-haiku-20240307-v1:0",
        region: str = "eu-west-2",
        enabled: bool = True,
        brand_name: str = "Bethel Educação",
        timeout_seconds: int = 30,
        max_tokens: int = 500,
        temperature: float = 0.7,
        client=None,
    ):
        self.model_id = model_id
        self.enabled = enabled and bool(model_id)
        self.brand_name = brand_name
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client
        self._region = region
        self._timeout_seconds = timeout_seconds

    @property
    def client(self):
        # Created on first use so routes that never call the model skip the client setup.
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=self._region,
                config=Config(
                    read_timeout=self._timeout_seconds,
                    connect_timeout=5,
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            )
        return self._client

    def is_configured(self) -> bool:
        return self.enabled

    def system_prompt(self, knowledge_context: Optional[str] = None) -> str:
        prompt = SYSTEM_PROMPT.format(brand=self.brand_name)
        if knowledge_context:
            return f"{prompt}\n\n{knowledge_context}"
        return f"{prompt}\n\n{NO_KNOWLEDGE_HINT}"

    def generate_response(
        self, turns: Sequence[ChatTurn], knowledge_context: Optional[str] = None
    ) -> str:
        """Reply to the conversation. Never raises."""
        if not self.is_configured():
            return NOT_CONFIGURED_REPLY

        start = time.perf_counter()
        try:
            extra_system, messages = to_converse_messages(turns)
            if not messages:
                return EMPTY_REPLY
            system = [{"text": self.system_prompt(knowledge_context)}]
            system.extend({"text": text} for text in extra_system)
            response = self.client.converse(
                modelId=self.model_id,
                system=system,
                messages=messages,
                inferenceConfig={"maxTokens": self.max_tokens, "temperature": self.temperature},
            )
            text = self._output_text(response)
        except Exception as exc:
            logger.error("AI generation failed", extra={"error": str(exc)})
            return ERROR_REPLY

        logger.info(
            "AI generation complete",
            extra={"duration_ms": int((time.perf_counter() - start) * 1000)},
        )
        return text or EMPTY_REPLY

    def analyze_ticket(self, title: str, description: str) -> TicketAnalysis:
        """Suggest category, priority and a first reply. Never raises."""
        if not self.is_configured():
            return fallback_analysis(configured=False)

        prompt = ANALYSIS_PROMPT.format(
            categories=", ".join(ANALYSIS_CATEGORIES), title=title, description=description
        )
        try:
            response = self.client.converse(
                modelId=self.model_id,
                messages=[{"role": "user", "content": [{"text": prompt}]}],
                inferenceConfig={"maxTokens": 300, "temperature": 0.3},
            )
            return self._parse_analysis(self._output_text(response))
        except Exception as exc:
            logger.warning("Ticket analysis failed; using fallback", extra={"error": str(exc)})
            return fallback_analysis()

    @staticmethod
    def _output_text(response: Dict[str, Any]) -> str:
        blocks = response.get("output", {}).get("message", {}).get("content", [])
        return "".join(block.get("text", "") for block in blocks).strip()

    @staticmethod
    def _parse_analysis(text: str) -> TicketAnalysis:
        match = _JSON_OBJECT.search(text or "")
        if not match:
            raise ValueError("model returned no JSON object")
        data = json.loads(match.group(0))
        if "suggestedResponse" in data and "suggested_response" not in data:
            data["suggested_response"] = data.pop("suggestedResponse")
        if data.get("category") not in ANALYSIS_CATEGORIES:
            data["category"] = "Outro"
        return TicketAnalysis.model_validate(data)
