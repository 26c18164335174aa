"""
Runtime configuration for the API and event worker Lambdas.

Every value comes from the environment so the CDK stack, local runs and
tests configure the app the same way.
"""

from dataclasses import dataclass
import os
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


@dataclass(frozen=True)
class AppSettings:
    """Application settings with local-friendly defaults."""

    environment: str = "dev"

    # Database
    database_url: Optional[str] = None
    db_secret_arn: Optional[str] = None

    # Side-effect queue; unset means the in-process worker is used.
    events_queue_url: Optional[str] = None

    # AI responder (Bedrock)
    ai_enabled: bool = True
    model_id: str = "anthropic.claude-3-haiku-20240307-v1:0"
    bedrock_region: str = "eu-west-2"
    ai_timeout_seconds: int = 30
    ai_max_tokens: int = 500
    ai_temperature: float = 0.7
    brand_name: str = "Bethel Educação"

    # Transactional email (Resend)
    resend_api_key: Optional[str] = None
    from_email: str = "onboarding@resend.dev"
    from_name: str = "Suporte Bethel Educação"
    app_url: str = "http://localhost:5173"

    # Webhooks
    webhook_timeout_seconds: int = 10
    webhook_max_workers: int = 8

    # Inbound channels
    instagram_verify_token: Optional[str] = None
    inbound_email_token: Optional[str] = None

    # Ticket lifecycle
    enforce_status_transitions: bool = False

    # Knowledge cache
    cache_ttl_seconds: int = 300
    cache_max_size: int = 128

    # Notification relay
    notifications_max_alerts: int = 50
    notifications_display_seconds: int = 5
    realtime_max_retries: int = 5
    realtime_retry_delay_seconds: float = 2.0

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @classmethod
    def from_environment(cls) -> "AppSettings":
        """Load settings from environment variables."""
        region = (
            os.environ.get("BEDROCK_REGION")
            or os.environ.get("AWS_REGION")
            or cls.bedrock_region
        )
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            database_url=os.environ.get("DATABASE_URL") or None,
            db_secret_arn=os.environ.get("DB_SECRET_ARN") or None,
            events_queue_url=os.environ.get("EVENTS_QUEUE_URL") or None,
            ai_enabled=_env_bool("AI_ENABLED", True),
            model_id=os.environ.get("MODEL_ID", cls.model_id),
            bedrock_region=region,
            ai_timeout_seconds=_env_int("AI_TIMEOUT_SECONDS", 30),
            ai_max_tokens=_env_int("AI_MAX_TOKENS", 500),
            ai_temperature=_env_float("AI_TEMPERATURE", 0.7),
            brand_name=os.environ.get("BRAND_NAME", cls.brand_name),
            resend_api_key=os.environ.get("RESEND_API_KEY") or None,
            from_email=os.environ.get("FROM_EMAIL", cls.from_email),
            from_name=os.environ.get("FROM_NAME", cls.from_name),
            app_url=os.environ.get("APP_URL", cls.app_url).rstrip("/"),
            webhook_timeout_seconds=_env_int("WEBHOOK_TIMEOUT_SECONDS", 10),
            webhook_max_workers=_env_int("WEBHOOK_MAX_WORKERS", 8),
            instagram_verify_token=os.environ.get("INSTAGRAM_VERIFY_TOKEN") or None,
            inbound_email_token=os.environ.get("INBOUND_EMAIL_TOKEN") or None,
            enforce_status_transitions=_env_bool("ENFORCE_STATUS_TRANSITIONS", False),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 300),
            cache_max_size=_env_int("CACHE_MAX_SIZE", 128),
            notifications_max_alerts=_env_int("NOTIFICATIONS_MAX_ALERTS", 50),
            notifications_display_seconds=_env_int("NOTIFICATIONS_DISPLAY_SECONDS", 5),
            realtime_max_retries=_env_int("REALTIME_MAX_RETRIES", 5),
            realtime_retry_delay_seconds=_env_float("REALTIME_RETRY_DELAY_SECONDS", 2.0),
        )
