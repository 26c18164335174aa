"""
API layer construct: shared Lambda + HTTP API routes.

A single Lambda keeps warm caches and reduces cold start costs.
Staff routes rely on JWT claims forwarded by an authorizer attached outside
this stack; the handlers check the role claim themselves.
"""

from typing import Dict

from aws_cdk import (
    Duration,
    aws_ec2 as ec2,
    aws_lambda as _lambda,
    aws_apigatewayv2 as apigw,
    aws_apigatewayv2_integrations as integrations,
    aws_logs as logs,
)
from constructs import Construct

ROUTE_DEFS = [
    (apigw.HttpMethod.GET, "/health"),
    (apigw.HttpMethod.POST, "/tickets"),
    (apigw.HttpMethod.GET, "/tickets"),
    (apigw.HttpMethod.GET, "/tickets/stats"),
    (apigw.HttpMethod.POST, "/tickets/analyze"),
    (apigw.HttpMethod.GET, "/tickets/{id}"),
    (apigw.HttpMethod.PATCH, "/tickets/{id}"),
    (apigw.HttpMethod.DELETE, "/tickets/{id}"),
    (apigw.HttpMethod.GET, "/tickets/{id}/messages"),
    (apigw.HttpMethod.POST, "/tickets/{id}/messages"),
    (apigw.HttpMethod.DELETE, "/messages/{id}"),
    (apigw.HttpMethod.POST, "/chat"),
    (apigw.HttpMethod.GET, "/webhooks"),
    (apigw.HttpMethod.POST, "/webhooks"),
    (apigw.HttpMethod.PATCH, "/webhooks/{id}"),
    (apigw.HttpMethod.DELETE, "/webhooks/{id}"),
    (apigw.HttpMethod.GET, "/webhooks/{id}/logs"),
    (apigw.HttpMethod.GET, "/knowledge"),
    (apigw.HttpMethod.POST, "/knowledge"),
    (apigw.HttpMethod.GET, "/knowledge/search"),
    (apigw.HttpMethod.PATCH, "/knowledge/{id}"),
    (apigw.HttpMethod.DELETE, "/knowledge/{id}"),
    (apigw.HttpMethod.POST, "/feedback"),
    (apigw.HttpMethod.GET, "/feedback"),
    (apigw.HttpMethod.GET, "/feedback/stats"),
    (apigw.HttpMethod.PATCH, "/feedback/{id}"),
    (apigw.HttpMethod.DELETE, "/feedback/{id}"),
    (apigw.HttpMethod.GET, "/quick-replies"),
    (apigw.HttpMethod.POST, "/quick-replies"),
    (apigw.HttpMethod.GET, "/quick-replies/categories"),
    (apigw.HttpMethod.GET, "/quick-replies/shortcut/{shortcut}"),
    (apigw.HttpMethod.PATCH, "/quick-replies/{id}"),
    (apigw.HttpMethod.DELETE, "/quick-replies/{id}"),
    (apigw.HttpMethod.GET, "/categories"),
    (apigw.HttpMethod.POST, "/categories"),
    (apigw.HttpMethod.PUT, "/categories/order"),
    (apigw.HttpMethod.PATCH, "/categories/{id}"),
    (apigw.HttpMethod.DELETE, "/categories/{id}"),
    (apigw.HttpMethod.GET, "/integrations/instagram/webhook"),
    (apigw.HttpMethod.POST, "/integrations/instagram/webhook"),
    (apigw.HttpMethod.POST, "/integrations/email/inbound"),
]


class ApiLayerConstruct(Construct):
    """Expose helpdesk endpoints via HTTP API."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        code: _lambda.Code,
        vpc: ec2.IVpc,
        security_group: ec2.ISecurityGroup,
        shared_env: Dict[str, str],
        lambda_memory_mb: int = 512,
        lambda_timeout_seconds: int = 30,
    ) -> None:
        super().__init__(scope, construct_id)

        self.main_lambda = _lambda.Function(
            self,
            "ApiHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="helpdesk.handlers.main.lambda_handler",
            code=code,
            memory_size=lambda_memory_mb,
            timeout=Duration.seconds(lambda_timeout_seconds),
            architecture=_lambda.Architecture.X86_64,
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            security_groups=[security_group],
            environment=dict(shared_env),
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        # HTTP API with minimal latency and low cost.
        self.api = apigw.HttpApi(
            self,
            "HttpApi",
            api_name=f"helpdesk-api-{environment}",
            cors_preflight=apigw.CorsPreflightOptions(
                allow_origins=["*"],
                allow_methods=[apigw.CorsHttpMethod.ANY],
                allow_headers=["Authorization", "Content-Type"],
            ),
        )

        integration = integrations.HttpLambdaIntegration(
            "LambdaIntegration", self.main_lambda
        )

        for method, path in ROUTE_DEFS:
            self.api.add_routes(
                path=path,
                methods=[method],
                integration=integration,
            )
