"""AI feedback tests."""

import pytest

from conftest import make_draft
from helpdesk.models.feedback import FeedbackRating, FeedbackUpdate
from helpdesk.utils.error_handling import NotFoundError, ValidationError


@pytest.fixture
def conversation(container):
    ticket = container.tickets.create(make_draft())
    customer = container.messages.create(ticket.id, "Não consigo acessar")
    ai = container.messages.create(ticket.id, "Tente redefinir a senha.", is_ai=True)
    return ticket, customer, ai


class TestSubmit:

    def test_feedback_on_ai_message(self, container, conversation):
        ticket, _, ai = conversation

        feedback = container.feedback.submit(
            ticket.id, ai.id, FeedbackRating.POSITIVE, comment="  Útil ", user_id="staff-1"
        )

        assert feedback.rating == FeedbackRating.POSITIVE
        assert feedback.comment == "Útil"
        assert container.feedback.by_message(ai.id).id == feedback.id

    def test_rejects_non_ai_message(self, container, conversation):
        ticket, customer, _ = conversation
        with pytest.raises(ValidationError):
            container.feedback.submit(ticket.id, customer.id, FeedbackRating.NEGATIVE)

    def test_rejects_message_from_another_ticket(self, container, conversation):
        _, _, ai = conversation
        other = container.tickets.create(make_draft(title="Outro"))
        with pytest.raises(ValidationError):
            container.feedback.submit(other.id, ai.id, FeedbackRating.POSITIVE)

    def test_unknown_message(self, container, conversation):
        ticket, _, _ = conversation
        with pytest.raises(NotFoundError):
            container.feedback.submit(ticket.id, "missing", FeedbackRating.POSITIVE)


class TestQueries:

    def test_stats_rounds_rates(self, container, conversation):
        ticket, _, ai = conversation
        container.feedback.submit(ticket.id, ai.id, "positive")
        container.feedback.submit(ticket.id, ai.id, "positive")
        container.feedback.submit(ticket.id, ai.id, "negative")

        stats = container.feedback.stats(days=30)

        assert stats.total == 3
        assert stats.positive == 2
        assert stats.negative == 1
        assert stats.positive_rate == 67
        assert stats.negative_rate == 33
        assert len(stats.recent) == 3

    def test_stats_with_no_feedback(self, container):
        stats = container.feedback.stats()
        assert stats.total == 0
        assert stats.positive_rate == 0

    def test_by_messages_maps_ids(self, container, conversation):
        ticket, _, ai = conversation
        other_ai = container.messages.create(ticket.id, "Outra resposta", is_ai=True)
        container.feedback.submit(ticket.id, ai.id, "negative")

        found = container.feedback.by_messages([ai.id, other_ai.id])

        assert set(found) == {ai.id}
        assert found[ai.id].rating == FeedbackRating.NEGATIVE
        assert container.feedback.by_messages([]) == {}

    def test_update_and_delete(self, container, conversation):
        ticket, _, ai = conversation
        feedback = container.feedback.submit(ticket.id, ai.id, "negative")

        updated = container.feedback.update(feedback.id, FeedbackUpdate(rating="positive"))
        assert updated.rating == FeedbackRating.POSITIVE
        assert len(container.feedback.by_ticket(ticket.id)) == 1

        container.feedback.delete(feedback.id)
        with pytest.raises(NotFoundError):
            container.feedback.get(feedback.id)
