"""
Side-effect queue.

Primary operations (ticket create/update, message create) never call
webhooks or the email provider directly. They publish a job and return;
a worker runs the job later. Deployed stacks use SQS and the event worker
Lambda, local runs drain an in-process queue on a daemon thread.
"""

from __future__ import annotations

import queue
import threading
import time
from abc import ABC, abstractmethod
from typing import Annotated, Literal, Optional, Union

import boto3
from pydantic import BaseModel, Field, TypeAdapter

from helpdesk.models.ticket import Ticket
from helpdesk.models.webhook import WebhookEvent
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


class WebhookJob(BaseModel):
    job_type: Literal["webhook"] = "webhook"
    event: WebhookEvent


class EmailJob(BaseModel):
    job_type: Literal["email"] = "email"
    kind: Literal["ticket_resolved", "staff_reply"]
    ticket: Ticket
    reply_content: Optional[str] = None
    author_name: Optional[str] = None


SideEffectJob = Annotated[Union[WebhookJob, EmailJob], Field(discriminator="job_type")]

job_adapter: TypeAdapter = TypeAdapter(SideEffectJob)


def describe(job) -> dict:
    """Log context for a job."""
    if isinstance(job, WebhookJob):
        return {"job_type": job.job_type, "event_type": job.event.event_type, "ticket_id": job.event.ticket_id}
    return {"job_type": job.job_type, "email_kind": job.kind, "ticket_id": job.ticket.id}


class JobRunner:
    """Routes a job to the webhook dispatcher or the email service."""

    def __init__(self, dispatcher, email_service):
        self.dispatcher = dispatcher
        self.email_service = email_service

    def run(self, job) -> None:
        """Run one job. Failures are logged, never raised."""
        try:
            if isinstance(job, WebhookJob):
                self.dispatcher.trigger(job.event)
            elif job.kind == "ticket_resolved":
                self.email_service.send_ticket_resolved(job.ticket)
            else:
                self.email_service.send_staff_reply(
                    job.ticket, job.reply_content or "", job.author_name
                )
        except Exception as exc:
            logger.error("Side-effect job failed", extra={**describe(job), "error": str(exc)})


class EventPublisher(ABC):
    """Accepts jobs from primary operations."""

    @abstractmethod
    def publish(self, job) -> None:
        raise NotImplementedError


class SqsEventPublisher(EventPublisher):
    """Sends jobs to the SQS queue consumed by the event worker Lambda."""

    def __init__(self, queue_url: str, client=None):
        self.queue_url = queue_url
        self.client = client or boto3.client("sqs")

    def publish(self, job) -> None:
        self.client.send_message(
            QueueUrl=self.queue_url,
            MessageBody=job.model_dump_json(),
            MessageAttributes={
                "job_type": {"DataType": "String", "StringValue": job.job_type},
            },
        )
        logger.info("Job queued", extra=describe(job))


class InProcessEventQueue(EventPublisher):
    """FIFO queue drained by one daemon worker thread."""

    _STOP = object()

    def __init__(self, runner: JobRunner):
        self.runner = runner
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def publish(self, job) -> None:
        self._ensure_worker()
        self._queue.put(job)

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._drain, name="helpdesk-side-effects", daemon=True
                )
                self._thread.start()

    def _drain(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is self._STOP:
                    return
                self.runner.run(job)
            finally:
                self._queue.task_done()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued job ran. Returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Finish queued jobs, then stop the worker."""
        with self._lock:
            thread = self._thread
        if thread is None or not thread.is_alive():
            return
        self._queue.put(self._STOP)
        thread.join(timeout)


class InlineEventPublisher(EventPublisher):
    """Runs jobs immediately on the caller's thread (scripts and tests)."""

    def __init__(self, runner: JobRunner):
        self.runner = runner

    def publish(self, job) -> None:
        try:
            self.runner.run(job)
        except Exception as exc:
            logger.error("Inline job failed", extra={**describe(job), "error": str(exc)})


def publish_quietly(publisher: EventPublisher, job) -> None:
    """Hand a job to the publisher; a publisher failure never fails the caller."""
    try:
        publisher.publish(job)
    except Exception as exc:
        logger.error("Failed to publish side-effect job", extra={**describe(job), "error": str(exc)})
