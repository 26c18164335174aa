#!/usr/bin/env python3
"""Create the helpdesk tables and change-feed triggers."""

import os
import sys

import boto3

from helpdesk.config.settings import AppSettings
from helpdesk.repositories.postgres_repo import get_engine
from helpdesk.repositories.schema import create_schema, install_change_triggers


def _secret_arn_from_stack(stack_name: str, region: str) -> str:
    cf = boto3.client("cloudformation", region_name=region)
    resp = cf.describe_stacks(StackName=stack_name)
    outputs = {o["OutputKey"]: o["OutputValue"] for o in resp["Stacks"][0]["Outputs"]}
    return outputs["DbSecretArn"]


def main():
    settings = AppSettings.from_environment()
    if not settings.database_url and not settings.db_secret_arn:
        stack_name = os.environ.get("STACK_NAME", f"HelpdeskStack-{settings.environment}")
        region = os.environ.get("AWS_REGION", "eu-west-2")
        try:
            secret_arn = _secret_arn_from_stack(stack_name, region)
        except Exception as e:
            print(f"Error getting DB secret from {stack_name}: {e}")
            sys.exit(1)
        settings = AppSettings(**{**settings.__dict__, "db_secret_arn": secret_arn})

    engine = get_engine(settings)
    print(f"Creating schema on {engine.url.render_as_string(hide_password=True)}")
    create_schema(engine)
    install_change_triggers(engine)
    print("Done")


if __name__ == "__main__":
    main()
