"""
Main CDK Stack for the helpdesk backend.
"""

import os

from aws_cdk import (
    BundlingOptions,
    Stack,
    Tags,
    CfnOutput,
    aws_iam as iam,
    aws_lambda as _lambda,
)
from constructs import Construct

from infrastructure.constructs.data_layer import DataLayerConstruct
from infrastructure.constructs.api_layer import ApiLayerConstruct
from infrastructure.constructs.event_pipeline import EventPipelineConstruct
from infrastructure.config.settings import Settings

# Passed through from the deploy environment when set.
PASSTHROUGH_ENV = (
    "RESEND_API_KEY",
    "FROM_EMAIL",
    "FROM_NAME",
    "INSTAGRAM_VERIFY_TOKEN",
    "INBOUND_EMAIL_TOKEN",
)


def bedrock_invoke_policy() -> iam.PolicyStatement:
    """Converse calls are authorised by bedrock:InvokeModel."""
    return iam.PolicyStatement(actions=["bedrock:InvokeModel"], resources=["*"])


class HelpdeskStack(Stack):
    """Main stack wiring all constructs together."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: Settings,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Global tags for cost/accounting.
        Tags.of(self).add("Project", "helpdesk")
        Tags.of(self).add("Environment", settings.environment)
        Tags.of(self).add("ManagedBy", "cdk")

        # 1) Network + database.
        data_construct = DataLayerConstruct(
            self,
            "DataLayer",
            environment=settings.environment,
            db_instance_class=settings.db_instance_class,
            db_allocated_storage=settings.db_allocated_storage,
        )

        # Bundle Lambda code with dependencies using Docker (works in CI/CD)
        bundled_code = _lambda.Code.from_asset(
            "src",
            bundling=BundlingOptions(
                image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                command=[
                    "bash", "-c",
                    "pip install -r requirements-lambda.txt -t /asset-output && "
                    "cp -r . /asset-output"
                ],
            ),
        )

        shared_env = {
            "ENVIRONMENT": settings.environment,
            "DB_SECRET_ARN": data_construct.db_secret.secret_arn,
            "MODEL_ID": settings.model_id,
            "BRAND_NAME": settings.brand_name,
            "APP_URL": settings.app_url,
            "ENFORCE_STATUS_TRANSITIONS": str(settings.enforce_status_transitions).lower(),
            "CACHE_TTL_SECONDS": str(settings.cache_ttl_seconds),
            "CACHE_MAX_SIZE": str(settings.cache_max_size),
        }
        for name in PASSTHROUGH_ENV:
            if os.environ.get(name):
                shared_env[name] = os.environ[name]

        # 2) Side-effect queue + worker.
        event_construct = EventPipelineConstruct(
            self,
            "EventPipeline",
            environment=settings.environment,
            code=bundled_code,
            vpc=data_construct.vpc,
            security_group=data_construct.lambda_security_group,
            shared_env=shared_env,
            memory_mb=settings.worker_memory_mb,
            timeout_seconds=settings.worker_timeout_seconds,
            batch_size=settings.worker_batch_size,
        )

        # 3) API layer (single Lambda).
        api_construct = ApiLayerConstruct(
            self,
            "ApiLayer",
            environment=settings.environment,
            code=bundled_code,
            vpc=data_construct.vpc,
            security_group=data_construct.lambda_security_group,
            shared_env={**shared_env, "EVENTS_QUEUE_URL": event_construct.queue.queue_url},
            lambda_memory_mb=settings.lambda_memory_mb,
            lambda_timeout_seconds=settings.lambda_timeout_seconds,
        )

        # Permissions.
        data_construct.db_secret.grant_read(api_construct.main_lambda)
        data_construct.db_secret.grant_read(event_construct.worker_lambda)
        event_construct.queue.grant_send_messages(api_construct.main_lambda)

        api_construct.main_lambda.add_to_role_policy(bedrock_invoke_policy())

        # Outputs to quickly find resources.
        CfnOutput(self, "ApiEndpoint", value=api_construct.api.api_endpoint)
        CfnOutput(self, "SideEffectQueueUrl", value=event_construct.queue.queue_url)
        CfnOutput(self, "DbSecretArn", value=data_construct.db_secret.secret_arn)
        CfnOutput(
            self,
            "DbEndpoint",
            value=data_construct.db_instance.db_instance_endpoint_address,
        )
