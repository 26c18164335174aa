"""Runtime and deployment settings tests."""

import pytest

from helpdesk.config.settings import AppSettings
from helpdesk.container import ServiceContainer
from helpdesk.services.event_queue import InProcessEventQueue, SqsEventPublisher
from helpdesk.services.ticket_service import RESTRICTED_TRANSITIONS


def test_from_environment(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "prod")
    monkeypatch.setenv("AI_ENABLED", "false")
    monkeypatch.setenv("APP_URL", "https://app.example.com/")
    monkeypatch.setenv("ENFORCE_STATUS_TRANSITIONS", "true")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("EVENTS_QUEUE_URL", "https://sqs.example/queue")
    monkeypatch.delenv("RESEND_API_KEY", raising=False)

    settings = AppSettings.from_environment()

    assert settings.is_production
    assert settings.ai_enabled is False
    assert settings.app_url == "https://app.example.com"
    assert settings.enforce_status_transitions is True
    assert settings.cache_ttl_seconds == 60
    assert settings.events_queue_url == "https://sqs.example/queue"
    assert settings.resend_api_key is None


def test_container_picks_publisher_and_policy(engine):
    local = ServiceContainer(AppSettings(), engine)
    assert isinstance(local.publisher, InProcessEventQueue)
    assert local.webhooks.allow_http is True

    deployed = ServiceContainer(
        AppSettings(
            environment="prod",
            events_queue_url="https://sqs.example/queue",
            enforce_status_transitions=True,
        ),
        engine,
    )
    assert isinstance(deployed.publisher, SqsEventPublisher)
    assert deployed.tickets.policy.table == RESTRICTED_TRANSITIONS
    assert deployed.webhooks.allow_http is False


def test_infrastructure_settings_prod_overrides(monkeypatch):
    from infrastructure.config.settings import Settings

    monkeypatch.setenv("ENVIRONMENT", "prod")
    monkeypatch.setenv("APP_URL", "https://app.example.com")
    prod = Settings.from_environment()

    assert prod.db_instance_class == "t3.small"
    assert prod.lambda_memory_mb == 1024
    assert prod.app_url == "https://app.example.com"

    monkeypatch.setenv("ENVIRONMENT", "dev")
    assert Settings.from_environment().db_instance_class == "t3.micro"


def test_bedrock_policy_grants_invoke_model_only():
    pytest.importorskip("aws_cdk")
    from infrastructure.main_stack import bedrock_invoke_policy

    assert bedrock_invoke_policy().actions == ["bedrock:InvokeModel"]
