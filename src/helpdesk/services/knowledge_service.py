"""
Knowledge lookup.

Matches curated articles to free text by keyword overlap. Results are cached
per (keywords, product) and the cache is dropped on every write.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from helpdesk.models.knowledge import KnowledgeDraft, KnowledgeEntry, KnowledgeUpdate
from helpdesk.repositories.knowledge_repo import KnowledgeRepository
from helpdesk.utils.cache_service import LRUCache
from helpdesk.utils.error_handling import NotFoundError, ValidationError
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

_WORD_RE = re.compile(r"\w+", re.UNICODE)

STOP_WORDS = frozenset(
    """
    que para com uma por mais como mas foi ele ela eles elas isso isto esse essa
    este esta estou está estão são ser ter tem tinha não sim meu minha seu sua
    dos das nos nas num numa pelo pela pelos pelas aos até após sobre entre
    quando onde qual quais quem porque então também já ainda muito pouco bem
    você vocês eu nós ao às aqui ali lá olá oi bom boa dia tarde noite obrigado
    obrigada favor preciso gostaria poderia pode fazer estava
    the and for with that this from have has had are was were you your our
    not but can could would should will what when where which who how why
    about into there their them they been being hello please thanks thank
    """.split()
)


def extract_keywords(text: str, limit: int = 10) -> List[str]:
    """Lower-cased content words of ``text``, first occurrence order, at most ``limit``."""
    keywords: List[str] = []
    for token in _WORD_RE.findall((text or "").lower()):
        if len(token) < 3 or token.isdigit() or token in STOP_WORDS:
            continue
        if token not in keywords:
            keywords.append(token)
        if len(keywords) >= limit:
            break
    return keywords


def build_context(entries: Iterable[KnowledgeEntry]) -> str:
    """Render entries as the knowledge block appended to the AI system prompt."""
    blocks = [f"### {entry.title} ({entry.category})\n{entry.content}" for entry in entries]
    if not blocks:
        return ""
    return "Base de conhecimento relevante:\n\n" + "\n\n".join(blocks)


class KnowledgeService:
    """Search and curation of knowledge entries."""

    def __init__(self, repository: KnowledgeRepository, cache: Optional[LRUCache] = None):
        self.repository = repository
        self.cache = cache or LRUCache(max_size=128, ttl_seconds=300)

    def search(self, text: str, product: Optional[str] = None, limit: int = 3) -> List[KnowledgeEntry]:
        keywords = extract_keywords(text)
        if not keywords:
            return []
        cache_key = ("search", tuple(keywords), product, limit)
        return self.cache.get_or_load(cache_key, lambda: self._rank(keywords, product, limit))

    def _rank(self, keywords: List[str], product: Optional[str], limit: int) -> List[KnowledgeEntry]:
        wanted = set(keywords)
        scored: List[Tuple[int, KnowledgeEntry]] = []
        for entry in self.repository.list(active_only=True):
            if entry.product and entry.product != product:
                continue
            overlap = len(wanted.intersection(k.lower() for k in entry.keywords))
            if overlap:
                scored.append((overlap, entry))
        scored.sort(key=lambda item: (-item[0], item[1].title))
        results = [entry for _, entry in scored[:limit]]
        logger.info(
            "Knowledge search complete",
            extra={"keywords": keywords, "product": product, "results_count": len(results)},
        )
        return results

    def build_context(self, entries: Iterable[KnowledgeEntry]) -> str:
        return build_context(entries)

    def create(self, draft: KnowledgeDraft) -> KnowledgeEntry:
        entry = self.repository.create(draft)
        self.cache.clear()
        logger.info("Knowledge entry created", extra={"knowledge_id": entry.id})
        return entry

    def get(self, entry_id: str) -> KnowledgeEntry:
        entry = self.repository.get(entry_id)
        if entry is None:
            raise NotFoundError(f"Knowledge entry {entry_id} not found")
        return entry

    def list(self, active_only: bool = False) -> List[KnowledgeEntry]:
        return self.repository.list(active_only=active_only)

    def by_category(self, category: str) -> List[KnowledgeEntry]:
        return self.repository.list(active_only=True, category=category)

    def by_product(self, product: str) -> List[KnowledgeEntry]:
        return self.repository.list(active_only=True, product=product)

    def update(self, entry_id: str, update: KnowledgeUpdate) -> KnowledgeEntry:
        changes = update.changes()
        for field in ("title", "category", "content", "keywords", "active"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        for field in ("title", "category", "content"):
            if field in changes and not changes[field].strip():
                raise ValidationError(f"{field} cannot be blank")
        if not changes:
            return self.get(entry_id)
        entry = self.repository.update(entry_id, changes)
        if entry is None:
            raise NotFoundError(f"Knowledge entry {entry_id} not found")
        self.cache.clear()
        return entry

    def toggle_active(self, entry_id: str, active: bool) -> KnowledgeEntry:
        return self.update(entry_id, KnowledgeUpdate(active=active))

    def delete(self, entry_id: str) -> None:
        if not self.repository.delete(entry_id):
            raise NotFoundError(f"Knowledge entry {entry_id} not found")
        self.cache.clear()
