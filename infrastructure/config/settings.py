"""
Environment-specific deployment settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Deployment settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"  # Default AWS region

    # Bedrock Configuration
    model_id: str = "anthropic.claude-3-haiku-20240307-v1:0"  # Cost-optimized
    brand_name: str = "Bethel Educação"

    # Database Configuration (Cost-optimized)
    db_instance_class: str = "t3.micro"  # Free tier eligible
    db_allocated_storage: int = 20  # Minimum GB

    # Lambda Configuration
    lambda_memory_mb: int = 512
    lambda_timeout_seconds: int = 30
    worker_memory_mb: int = 256
    worker_timeout_seconds: int = 60
    worker_batch_size: int = 10

    # Application
    app_url: str = "http://localhost:5173"
    enforce_status_transitions: bool = False

    # Cache Configuration
    cache_ttl_seconds: int = 300  # 5 minutes
    cache_max_size: int = 128

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        app_url = os.environ.get("APP_URL", cls.app_url)
        enforce = os.environ.get("ENFORCE_STATUS_TRANSITIONS", "false").lower() == "true"

        # Production overrides
        if env == "prod":
            return cls(
                environment="prod",
                db_instance_class="t3.small",  # Upgrade for prod
                db_allocated_storage=50,
                lambda_memory_mb=1024,
                lambda_timeout_seconds=60,
                worker_memory_mb=512,
                app_url=app_url,
                enforce_status_transitions=enforce,
            )

        return cls(environment=env, app_url=app_url, enforce_status_transitions=enforce)
