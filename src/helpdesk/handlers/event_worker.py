"""
Event worker Lambda.

Consumes side-effect jobs (webhook deliveries, customer emails) from SQS.
Jobs never raise; a record that cannot be parsed is logged and skipped so it
does not block the batch.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from helpdesk.handlers.dependencies import get_container
from helpdesk.services.event_queue import describe, job_adapter
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


def lambda_handler(event, context):
    runner = get_container().job_runner
    processed = 0
    skipped = 0
    for record in event.get("Records", []):
        try:
            job = job_adapter.validate_json(record.get("body") or "")
        except PydanticValidationError as exc:
            skipped += 1
            logger.error(
                "Skipping unparsable job",
                extra={"message_id": record.get("messageId"), "error": str(exc)},
            )
            continue
        runner.run(job)
        processed += 1
        logger.info("Job processed", extra=describe(job))

    return {"processed": processed, "skipped": skipped}
