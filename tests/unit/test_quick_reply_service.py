"""Quick reply curation and shortcut lookup."""

import pytest

from helpdesk.models.quick_reply import QuickReplyDraft, QuickReplyUpdate
from helpdesk.utils.error_handling import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def service(container):
    return container.quick_replies


def _reply(service, title, shortcut, category="Acesso", active=True):
    return service.create(
        QuickReplyDraft(
            title=title,
            shortcut=shortcut,
            content=f"Resposta padrão: {title.lower()}.",
            category=category,
            active=active,
        ),
        created_by="staff-1",
    )


def test_shortcut_is_normalised():
    assert QuickReplyDraft(title="Senha", shortcut=" Senha ", content="x").shortcut == "/senha"
    with pytest.raises(ValueError):
        QuickReplyDraft(title="Senha", shortcut="/duas palavras", content="x")


def test_list_orders_by_category_then_title(service):
    _reply(service, "Reset de senha", "/senha", category="Acesso")
    _reply(service, "Segunda via", "/boleto", category="Financeiro")
    _reply(service, "Acesso bloqueado", "/bloqueio", category="Acesso")
    _reply(service, "Antigo", "/antigo", category="Acesso", active=False)

    assert [reply.title for reply in service.list()] == [
        "Acesso bloqueado",
        "Reset de senha",
        "Segunda via",
    ]
    assert len(service.list(active_only=False)) == 4


def test_lookup_by_shortcut_ignores_inactive(service):
    reply = _reply(service, "Reset de senha", "/senha")
    _reply(service, "Antigo", "/antigo", active=False)

    assert service.by_shortcut("senha").id == reply.id
    assert service.by_shortcut("/SENHA").id == reply.id
    assert service.by_shortcut("/antigo") is None
    assert service.by_shortcut("/nada") is None


def test_categories_are_distinct_and_sorted(service):
    _reply(service, "A", "/a", category="Financeiro")
    _reply(service, "B", "/b", category="Acesso")
    _reply(service, "C", "/c", category="Acesso")
    _reply(service, "D", "/d", category="Arquivo", active=False)

    assert service.categories() == ["Acesso", "Financeiro"]


def test_duplicate_shortcut_conflicts(service):
    first = _reply(service, "Reset de senha", "/senha")
    other = _reply(service, "Boleto", "/boleto")

    with pytest.raises(ConflictError):
        _reply(service, "Outra senha", "/senha")
    with pytest.raises(ConflictError):
        service.update(other.id, QuickReplyUpdate(shortcut="senha"))

    assert service.by_shortcut("/senha").id == first.id


def test_update_toggle_and_delete(service):
    reply = _reply(service, "Reset de senha", "/senha")

    updated = service.update(reply.id, QuickReplyUpdate(content="  Novo texto  "))
    assert updated.content == "Novo texto"
    assert updated.created_by == "staff-1"

    with pytest.raises(ValidationError):
        service.update(reply.id, QuickReplyUpdate(title="   "))
    with pytest.raises(ValidationError):
        service.update(reply.id, QuickReplyUpdate(shortcut=None))

    assert service.toggle_active(reply.id, False).active is False
    assert service.by_shortcut("/senha") is None

    service.delete(reply.id)
    with pytest.raises(NotFoundError):
        service.get(reply.id)
    with pytest.raises(NotFoundError):
        service.delete(reply.id)
