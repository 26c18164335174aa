"""Knowledge search and curation tests."""

import pytest

from helpdesk.models.knowledge import KnowledgeDraft, KnowledgeUpdate
from helpdesk.services.knowledge_service import build_context, extract_keywords
from helpdesk.utils.error_handling import NotFoundError, ValidationError


def _entry(service, title, keywords, product=None, active=True, category="Acesso"):
    return service.create(
        KnowledgeDraft(
            title=title,
            category=category,
            content=f"Conteúdo sobre {title.lower()}.",
            keywords=keywords,
            product=product,
            active=active,
        )
    )


@pytest.fixture
def service(container):
    return container.knowledge


def test_extract_keywords_drops_stop_words_and_numbers():
    keywords = extract_keywords("Olá, não consigo acessar o curso de Python 2024!")
    assert keywords == ["consigo", "acessar", "curso", "python"]


def test_extract_keywords_dedupes_and_limits():
    text = "senha senha login email conta acesso plataforma aula certificado boleto pix cartão"
    keywords = extract_keywords(text, limit=5)
    assert keywords == ["senha", "login", "email", "conta", "acesso"]


def test_build_context_renders_entries(service):
    entry = _entry(service, "Reset de senha", ["senha"])
    context = build_context([entry])
    assert context.startswith("Base de conhecimento relevante:")
    assert "### Reset de senha (Acesso)" in context
    assert build_context([]) == ""


class TestSearch:

    def test_ranks_by_overlap_and_respects_product(self, service):
        general = _entry(service, "Acesso à conta", ["acesso", "senha", "login"])
        product = _entry(service, "Senha do Curso X", ["senha", "pagamento"], product="Curso X")
        _entry(service, "Arquivado", ["senha", "login"], active=False)
        _entry(service, "Outro produto", ["senha", "login", "acesso"], product="Curso Y")

        without_product = service.search("esqueci minha senha de login")
        assert [entry.id for entry in without_product] == [general.id]

        with_product = service.search("esqueci minha senha de login", product="Curso X")
        assert [entry.id for entry in with_product] == [general.id, product.id]

    def test_ties_are_ordered_by_title(self, service):
        second = _entry(service, "B artigo", ["boleto"])
        first = _entry(service, "A artigo", ["boleto"])
        results = service.search("meu boleto venceu")
        assert [entry.id for entry in results] == [first.id, second.id]

    def test_limit(self, service):
        for index in range(5):
            _entry(service, f"Artigo {index}", ["certificado"])
        assert len(service.search("certificado", limit=3)) == 3

    def test_text_without_keywords_returns_nothing(self, service):
        _entry(service, "Artigo", ["oi"])
        assert service.search("oi, bom dia") == []

    def test_writes_invalidate_cached_results(self, service):
        _entry(service, "Primeiro", ["certificado"])
        assert len(service.search("certificado")) == 1

        _entry(service, "Segundo", ["certificado"])
        assert len(service.search("certificado")) == 2


class TestCuration:

    def test_update_and_toggle(self, service):
        entry = _entry(service, "Artigo", ["pix"])

        updated = service.update(entry.id, KnowledgeUpdate(keywords=["PIX", "boleto"]))
        assert updated.keywords == ["pix", "boleto"]

        service.toggle_active(entry.id, False)
        assert service.search("pagar com pix") == []
        assert service.by_category("Acesso") == []
        assert len(service.list()) == 1

    def test_update_rejects_blank_title(self, service):
        entry = _entry(service, "Artigo", ["pix"])
        with pytest.raises(ValidationError):
            service.update(entry.id, KnowledgeUpdate(title="  "))

    def test_by_product(self, service):
        entry = _entry(service, "Artigo", ["pix"], product="Curso X")
        _entry(service, "Outro", ["pix"])
        assert [found.id for found in service.by_product("Curso X")] == [entry.id]

    def test_delete(self, service):
        entry = _entry(service, "Artigo", ["pix"])
        service.delete(entry.id)
        with pytest.raises(NotFoundError):
            service.get(entry.id)
