"""Side-effect queue tests: job routing, publishers and the in-process worker."""

import json
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

from helpdesk.models.ticket import Ticket
from helpdesk.models.webhook import WebhookEvents
from helpdesk.services.event_queue import (
    EmailJob,
    InlineEventPublisher,
    InProcessEventQueue,
    JobRunner,
    SqsEventPublisher,
    WebhookJob,
    job_adapter,
    publish_quietly,
)


def _ticket(**overrides):
    now = datetime(2025, 3, 5, 14, 30, tzinfo=timezone.utc)
    values = {
        "id": "0f8c2a1e-1111-2222-3333-444455556666",
        "title": "Erro no login",
        "description": "Senha não funciona",
        "category": "Acesso",
        "customer_email": "maria@example.com",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Ticket(**values)


class TestJobRunner:

    def test_webhook_job_goes_to_dispatcher(self):
        dispatcher, email = MagicMock(), MagicMock()
        event = WebhookEvents.ticket_created("t1", {})

        JobRunner(dispatcher, email).run(WebhookJob(event=event))

        dispatcher.trigger.assert_called_once_with(event)
        email.send_ticket_resolved.assert_not_called()

    def test_email_jobs_go_to_email_service(self):
        dispatcher, email = MagicMock(), MagicMock()
        runner = JobRunner(dispatcher, email)
        ticket = _ticket()

        runner.run(EmailJob(kind="ticket_resolved", ticket=ticket))
        runner.run(EmailJob(kind="staff_reply", ticket=ticket, reply_content="Oi", author_name="Ana"))

        email.send_ticket_resolved.assert_called_once_with(ticket)
        email.send_staff_reply.assert_called_once_with(ticket, "Oi", "Ana")

    def test_failures_are_swallowed(self):
        dispatcher = MagicMock()
        dispatcher.trigger.side_effect = RuntimeError("database down")

        JobRunner(dispatcher, MagicMock()).run(WebhookJob(event=WebhookEvents.ticket_created("t1", {})))

        dispatcher.trigger.assert_called_once()


class TestPublishers:

    def test_sqs_publisher_sends_parseable_body(self):
        client = MagicMock()
        publisher = SqsEventPublisher("https://sqs.example/queue", client=client)
        job = EmailJob(kind="ticket_resolved", ticket=_ticket())

        publisher.publish(job)

        kwargs = client.send_message.call_args.kwargs
        assert kwargs["QueueUrl"] == "https://sqs.example/queue"
        assert kwargs["MessageAttributes"]["job_type"]["StringValue"] == "email"
        parsed = job_adapter.validate_json(kwargs["MessageBody"])
        assert isinstance(parsed, EmailJob)
        assert parsed.ticket.id == job.ticket.id

    def test_webhook_job_body_keeps_event_type(self):
        client = MagicMock()
        job = WebhookJob(event=WebhookEvents.status_changed("t1", "open", "closed", {"id": "t1"}))

        SqsEventPublisher("q", client=client).publish(job)

        body = json.loads(client.send_message.call_args.kwargs["MessageBody"])
        assert body["job_type"] == "webhook"
        assert body["event"]["event_type"] == "status_changed"

    def test_inline_publisher_runs_immediately(self):
        runner = MagicMock()
        job = WebhookJob(event=WebhookEvents.ticket_created("t1", {}))

        InlineEventPublisher(runner).publish(job)

        runner.run.assert_called_once_with(job)

    def test_publish_quietly_never_raises(self):
        publisher = MagicMock()
        publisher.publish.side_effect = RuntimeError("queue unavailable")

        publish_quietly(publisher, WebhookJob(event=WebhookEvents.ticket_created("t1", {})))

        publisher.publish.assert_called_once()


class TestInProcessEventQueue:

    def test_jobs_run_in_order_on_a_worker_thread(self):
        seen = []
        threads = set()

        class Runner:
            def run(self, job):
                seen.append(job.event.ticket_id)
                threads.add(threading.current_thread().name)

        queue = InProcessEventQueue(Runner())
        for ticket_id in ("t1", "t2", "t3"):
            queue.publish(WebhookJob(event=WebhookEvents.ticket_created(ticket_id, {})))

        assert queue.join(timeout=5)
        assert seen == ["t1", "t2", "t3"]
        assert threads == {"helpdesk-side-effects"}
        queue.close()

    def test_failing_job_does_not_stop_the_worker(self):
        runner = JobRunner(MagicMock(), MagicMock())
        runner.dispatcher.trigger.side_effect = [RuntimeError("boom"), None]
        queue = InProcessEventQueue(runner)

        queue.publish(WebhookJob(event=WebhookEvents.ticket_created("t1", {})))
        queue.publish(WebhookJob(event=WebhookEvents.ticket_created("t2", {})))

        assert queue.join(timeout=5)
        assert runner.dispatcher.trigger.call_count == 2
        queue.close()

    def test_publish_returns_before_the_job_runs(self):
        release = threading.Event()

        class SlowRunner:
            def run(self, job):
                release.wait(5)

        queue = InProcessEventQueue(SlowRunner())
        queue.publish(WebhookJob(event=WebhookEvents.ticket_created("t1", {})))

        assert queue.join(timeout=0.05) is False
        release.set()
        assert queue.join(timeout=5)
        queue.close()
