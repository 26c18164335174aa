"""
Transactional email to end customers through the Resend API.

Only the side-effect job runner calls this module. Failures surface as
``IntegrationError`` and the runner logs them.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Dict, List, Optional

import requests

from helpdesk.models.ticket import Ticket
from helpdesk.utils.error_handling import IntegrationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

_LAYOUT = """<!DOCTYPE html>
<html lang="pt-BR">
<head><meta charset="UTF-8"><title>{heading}</title></head>
<body style="margin:0;padding:0;font-family:'Segoe UI',Tahoma,sans-serif;background:#f5f5f5;">
  <table role="presentation" style="width:100%;border-collapse:collapse;">
    <tr><td align="center" style="padding:40px 0;">
      <table role="presentation" style="width:600px;background:#ffffff;border-radius:8px;">
        <tr><td style="background:#667eea;padding:32px;text-align:center;border-radius:8px 8px 0 0;">
          <h1 style="margin:0;color:#ffffff;font-size:26px;">{heading}</h1>
        </td></tr>
        <tr><td style="padding:32px;color:#333333;font-size:16px;line-height:1.5;">
          {body}
          <p style="text-align:center;margin:30px 0;">
            <a href="{link}" style="display:inline-block;padding:14px 32px;background:#667eea;color:#ffffff;text-decoration:none;border-radius:6px;font-weight:600;">Ver Detalhes do Ticket</a>
          </p>
          <p>Atenciosamente,<br><strong>Equipe {brand}</strong></p>
        </td></tr>
        <tr><td style="background:#f8f9fa;padding:24px;text-align:center;font-size:13px;color:#6c757d;border-radius:0 0 8px 8px;">
          Este é um email automático. Por favor, não responda diretamente.<br>
          &copy; {year} {brand}. Todos os direitos reservados.
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def format_datetime(value: Optional[datetime]) -> str:
    """Short pt-BR date and time, e.g. 05/03/2025 14:30."""
    return (value or datetime.now(timezone.utc)).strftime("%d/%m/%Y %H:%M")


class EmailNotificationService:
    """Render and send the two customer-facing emails."""

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        from_name: str,
        app_url: str,
        brand_name: str = "Bethel Educação",
        timeout_seconds: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.app_url = app_url.rstrip("/")
        self.brand_name = brand_name
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ticket_link(self, ticket: Ticket) -> str:
        return f"{self.app_url}/tickets/{ticket.id}"

    def send_ticket_resolved(self, ticket: Ticket) -> Optional[str]:
        if not ticket.customer_email:
            return None
        name = ticket.customer_name or "Cliente"
        resolved_at = format_datetime(ticket.resolved_at)

        body = (
            f"<p>Olá <strong>{html.escape(name)}</strong>,</p>"
            "<p>Temos boas notícias! Seu ticket foi resolvido com sucesso.</p>"
            f"<p><strong>{html.escape(ticket.title)}</strong><br>"
            f"ID do Ticket: #{ticket.short_ref}<br>Resolvido em: {resolved_at}</p>"
        )
        if ticket.resolution:
            body += f"<p><strong>Resolução:</strong><br>{html.escape(ticket.resolution)}</p>"
        body += (
            "<p>Se você tiver mais dúvidas ou precisar de assistência adicional, "
            "não hesite em nos contatar.</p>"
        )

        text_lines = [
            f"Olá {name},",
            "",
            "Temos boas notícias! Seu ticket foi resolvido com sucesso.",
            "",
            "Detalhes do Ticket:",
            f"- Título: {ticket.title}",
            f"- ID: #{ticket.short_ref}",
            f"- Resolvido em: {resolved_at}",
        ]
        if ticket.resolution:
            text_lines += ["", "Resolução:", ticket.resolution]
        text_lines += self._text_footer(ticket)

        return self._send(
            to=ticket.customer_email,
            subject=f'Seu ticket "{ticket.title}" foi resolvido',
            html_content=self._render("Ticket Resolvido", body, ticket),
            text_content="\n".join(text_lines),
            tags=[
                {"name": "category", "value": "ticket-resolved"},
                {"name": "ticket-id", "value": ticket.id},
            ],
        )

    def send_staff_reply(
        self, ticket: Ticket, reply_content: str, author_name: Optional[str] = None
    ) -> Optional[str]:
        if not ticket.customer_email:
            return None
        name = ticket.customer_name or "Cliente"
        author = author_name or "Equipe de Suporte"

        body = (
            f"<p>Olá <strong>{html.escape(name)}</strong>,</p>"
            f"<p>{html.escape(author)} respondeu ao seu ticket "
            f"<strong>{html.escape(ticket.title)}</strong> (#{ticket.short_ref}):</p>"
            '<blockquote style="border-left:4px solid #667eea;margin:20px 0;padding:12px 20px;'
            'background:#f8f9fa;white-space:pre-wrap;">'
            f"{html.escape(reply_content)}</blockquote>"
        )
        text_lines = [
            f"Olá {name},",
            "",
            f'{author} respondeu ao seu ticket "{ticket.title}" (#{ticket.short_ref}):',
            "",
            reply_content,
        ] + self._text_footer(ticket)

        return self._send(
            to=ticket.customer_email,
            subject=f'Nova resposta no ticket "{ticket.title}"',
            html_content=self._render("Nova Resposta", body, ticket),
            text_content="\n".join(text_lines),
            tags=[
                {"name": "category", "value": "admin-reply"},
                {"name": "ticket-id", "value": ticket.id},
            ],
        )

    def _render(self, heading: str, body: str, ticket: Ticket) -> str:
        return _LAYOUT.format(
            heading=heading,
            body=body,
            link=html.escape(self.ticket_link(ticket), quote=True),
            brand=html.escape(self.brand_name),
            year=datetime.now(timezone.utc).year,
        )

    def _text_footer(self, ticket: Ticket) -> List[str]:
        return [
            "",
            f"Acompanhe seu ticket: {self.ticket_link(ticket)}",
            "",
            "Atenciosamente,",
            f"Equipe {self.brand_name}",
            "",
            "---",
            "Este é um email automático. Por favor, não responda diretamente.",
        ]

    def _send(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str,
        tags: List[Dict[str, str]],
    ) -> Optional[str]:
        """POST to Resend and return the provider's email id."""
        if not self.is_configured():
            logger.info("Email provider not configured; skipping", extra={"subject": subject})
            return None

        try:
            response = self.session.post(
                RESEND_API_URL,
                json={
                    "from": f"{self.from_name} <{self.from_email}>",
                    "to": [to],
                    "subject": subject,
                    "html": html_content,
                    "text": text_content,
                    "tags": tags,
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise IntegrationError(f"Email provider unreachable: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise IntegrationError(
                f"Email provider returned {response.status_code}: {response.text[:500]}"
            )

        email_id = None
        try:
            email_id = response.json().get("id")
        except ValueError:
            logger.warning("Email provider returned a non-JSON body")
        logger.info("Email sent", extra={"email_id": email_id, "tags": tags})
        return email_id
