"""Lightweight health check handler."""

import json
import os
from datetime import datetime, timezone

from helpdesk import __version__


def lambda_handler(event, context):
    """Return a simple 200 response to verify the stack is alive."""
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "status": "ok",
                "environment": os.environ.get("ENVIRONMENT", "dev"),
                "version": __version__,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ),
    }
