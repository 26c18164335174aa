"""
Event pipeline: SQS side-effect queue -> event worker Lambda.

Primary operations publish webhook and email jobs; the worker delivers them.
Jobs never fail the batch, so there is no dead-letter queue.
"""

from typing import Dict

from aws_cdk import (
    Duration,
    aws_ec2 as ec2,
    aws_lambda as _lambda,
    aws_lambda_event_sources as event_sources,
    aws_logs as logs,
    aws_sqs as sqs,
)
from constructs import Construct


class EventPipelineConstruct(Construct):
    """Queue plus the Lambda that drains it."""

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
        memory_mb: int = 256,
        timeout_seconds: int = 60,
        batch_size: int = 10,
    ) -> None:
        super().__init__(scope, construct_id)

        self.queue = sqs.Queue(
            self,
            "SideEffectQueue",
            queue_name=f"helpdesk-side-effects-{environment}",
            visibility_timeout=Duration.seconds(timeout_seconds * 6),
            retention_period=Duration.days(4),
            encryption=sqs.QueueEncryption.SQS_MANAGED,
        )

        self.worker_lambda = _lambda.Function(
            self,
            "EventWorker",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="helpdesk.handlers.event_worker.lambda_handler",
            code=code,
            memory_size=memory_mb,
            timeout=Duration.seconds(timeout_seconds),
            architecture=_lambda.Architecture.X86_64,
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            security_groups=[security_group],
            environment=dict(shared_env),
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        self.worker_lambda.add_event_source(
            event_sources.SqsEventSource(self.queue, batch_size=batch_size)
        )
