"""
Pytest configuration and shared fixtures.

Puts src/ on sys.path the way Lambda does (Code.from_asset("src") makes
src/ the import root) and provides a throwaway SQLite database plus a
ServiceContainer wired to it, so service and handler tests run without AWS.
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing."""
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    # Repo root for infrastructure.* imports
    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("BEDROCK_REGION", "eu-west-2")

boto3.setup_default_session(region_name="eu-west-2")

from helpdesk.config.settings import AppSettings  # noqa: E402
from helpdesk.container import ServiceContainer  # noqa: E402
from helpdesk.handlers.dependencies import set_container  # noqa: E402
from helpdesk.models.ticket import TicketDraft  # noqa: E402
from helpdesk.repositories.postgres_repo import build_engine  # noqa: E402
from helpdesk.repositories.schema import create_schema  # noqa: E402
from helpdesk.services.event_queue import EmailJob, EventPublisher, WebhookJob  # noqa: E402


class RecordingPublisher(EventPublisher):
    """Keeps published jobs in memory instead of running them."""

    def __init__(self):
        self.jobs: List[Any] = []

    def publish(self, job) -> None:
        self.jobs.append(job)

    def event_types(self) -> List[str]:
        return [job.event.event_type for job in self.jobs if isinstance(job, WebhookJob)]

    def emails(self) -> List[EmailJob]:
        return [job for job in self.jobs if isinstance(job, EmailJob)]


def make_draft(**overrides) -> TicketDraft:
    values = {
        "title": "Não consigo acessar o curso",
        "description": "A plataforma mostra erro 500 ao abrir a aula 3.",
        "category": "Acesso",
        "customer_name": "Maria Souza",
        "customer_email": "maria@example.com",
    }
    values.update(overrides)
    return TicketDraft(**values)


def api_event(
    method: str,
    path: str,
    body: Optional[Dict[str, Any]] = None,
    query: Optional[Dict[str, str]] = None,
    headers: Optional[Dict[str, str]] = None,
    role: Optional[str] = None,
    sub: str = "staff-1",
) -> Dict[str, Any]:
    """Minimal API Gateway HTTP API (payload v2) event."""
    request_context: Dict[str, Any] = {"http": {"method": method, "path": path}}
    if role:
        request_context["authorizer"] = {
            "jwt": {"claims": {"sub": sub, "role": role, "name": "Ana Staff"}}
        }
    event: Dict[str, Any] = {"requestContext": request_context, "headers": headers or {}}
    if body is not None:
        event["body"] = json.dumps(body)
    if query is not None:
        event["queryStringParameters"] = query
    return event


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(environment="test", ai_enabled=True)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'helpdesk.db'}")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def ai_client() -> MagicMock:
    client = MagicMock()
    client.converse.return_value = {
        "output": {"message": {"content": [{"text": "Olá! Tente limpar o cache do navegador."}]}}
    }
    return client


@pytest.fixture
def http_session() -> MagicMock:
    session = MagicMock()
    session.post.return_value = MagicMock(status_code=200, text="ok")
    return session


@pytest.fixture
def container(settings, engine, publisher, ai_client, http_session) -> ServiceContainer:
    return ServiceContainer(
        settings, engine, publisher=publisher, ai_client=ai_client, http_session=http_session
    )


@pytest.fixture
def api(container):
    """Install the container for handler tests and reset it afterwards."""
    set_container(container)
    yield container
    set_container(None)
