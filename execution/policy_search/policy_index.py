"""
Policy Index - in-memory policy collection with keyword search

Owns the ingested policies, assigns their identity and answers
list/search/filter queries. Relevance is a linear heuristic:

    score = 10   if the whole query appears in the title
          + n    per section, n = query terms found in "<heading> <content>"
          + 0.5  per literal occurrence of the whole query in the content

Every search re-scans all candidate policies; there is no inverted index.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from .extractor import ExtractedDocument, Section
from .policy_store import InMemoryPolicyStorage, PolicyStorage

TITLE_MATCH_SCORE = 10.0
CONTENT_MATCH_SCORE = 0.5
MIN_TERM_LENGTH = 3


@dataclass(frozen=True)
class Policy:
    """A fully ingested policy document. Treated as immutable once stored."""
    id: str
    title: str
    content: str
    source_file: str
    sections: list[Section]
    extracted_at: datetime
    category: Optional[str] = None
    effective_date: Optional[str] = None
    version: Optional[str] = None
    author: Optional[str] = None
    page_count: Optional[int] = None

    def to_summary(self) -> "PolicySummary":
        return PolicySummary(
            id=self.id,
            title=self.title,
            source_file=self.source_file,
            category=self.category,
            section_count=len(self.sections),
            extracted_at=self.extracted_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "source_file": self.source_file,
            "category": self.category,
            "effective_date": self.effective_date,
            "version": self.version,
            "author": self.author,
            "page_count": self.page_count,
            "sections": [s.to_dict() for s in self.sections],
            "extracted_at": self.extracted_at.isoformat(),
        }


@dataclass(frozen=True)
class PolicySummary:
    """Lightweight listing view of a policy."""
    id: str
    title: str
    source_file: str
    category: Optional[str]
    section_count: int
    extracted_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "source_file": self.source_file,
            "category": self.category,
            "section_count": self.section_count,
            "extracted_at": self.extracted_at.isoformat(),
        }


@dataclass
class PolicySearchResult:
    """A policy matched by a search, with the headings that matched."""
    policy: Policy
    relevance_score: float
    matched_sections: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.policy.id,
            "title": self.policy.title,
            "category": self.policy.category,
            "matched_sections": self.matched_sections,
            "relevance_score": self.relevance_score,
        }


def _default_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _category_matches(policy: Policy, category: str) -> bool:
    return policy.category is not None and policy.category.lower() == category.lower()


def query_terms(query: str) -> list[str]:
    """Lowercased whitespace-separated terms longer than two characters."""
    return [t for t in query.lower().split() if len(t) >= MIN_TERM_LENGTH]


def score_policy(policy: Policy, query: str, terms: list[str]) -> tuple[float, list[str]]:
    """
    Score one policy against a normalized (lowercased, trimmed) query.

    Returns:
        tuple: (relevance score, matched section headings in section order)
    """
    score = 0.0
    matched_sections: list[str] = []

    if query in policy.title.lower():
        score += TITLE_MATCH_SCORE

    for section in policy.sections:
        section_text = f"{section.heading} {section.content}".lower()
        hits = sum(1 for term in terms if term in section_text)
        if hits > 0:
            matched_sections.append(section.heading)
            score += hits

    # Literal, non-overlapping occurrences; the query is never a pattern
    score += policy.content.lower().count(query) * CONTENT_MATCH_SCORE

    return score, matched_sections


class PolicyIndex:
    """
    In-memory collection of policies with listing and keyword search.

    Storage, id generation and the clock are injectable so the index can be
    backed by another store or driven deterministically in tests.
    """

    def __init__(
        self,
        storage: Optional[PolicyStorage] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._storage = storage if storage is not None else InMemoryPolicyStorage()
        self._id_factory = id_factory or _default_id
        self._clock = clock or _utc_now

    def add(
        self,
        parsed: ExtractedDocument,
        source_file: str,
        category: Optional[str] = None,
    ) -> Policy:
        """Store an extracted document as a new policy with a fresh id."""
        policy = Policy(
            id=self._id_factory(),
            title=parsed.title,
            content=parsed.content,
            source_file=source_file,
            sections=list(parsed.sections),
            extracted_at=self._clock(),
            category=category,
            effective_date=parsed.metadata.effective_date,
            version=parsed.metadata.version,
            author=parsed.metadata.author,
            page_count=parsed.metadata.page_count,
        )
        # Only a fully built policy is ever published to storage
        self._storage.put(policy)
        return policy

    def get(self, policy_id: str) -> Optional[Policy]:
        return self._storage.get(policy_id)

    def list_all(self) -> list[Policy]:
        return self._storage.values()

    def _candidates(self, category: Optional[str]) -> list[Policy]:
        policies = self._storage.values()
        if category:
            policies = [p for p in policies if _category_matches(p, category)]
        return policies

    def list_policies(self, category: Optional[str] = None) -> list[PolicySummary]:
        """Summaries of all policies, optionally filtered by category (case-insensitive)."""
        return [p.to_summary() for p in self._candidates(category)]

    def search(self, query: str, category: Optional[str] = None) -> list[PolicySearchResult]:
        """
        Rank policies against a free-text query.

        Empty queries, and queries made only of terms of two characters or
        fewer, return no results. Ties keep storage (insertion) order.
        """
        normalized = (query or "").lower().strip()
        if not normalized:
            return []

        terms = query_terms(normalized)
        if not terms:
            return []

        results = []
        for policy in self._candidates(category):
            score, matched_sections = score_policy(policy, normalized, terms)
            if score > 0:
                results.append(PolicySearchResult(
                    policy=policy,
                    relevance_score=score,
                    matched_sections=matched_sections,
                ))

        results.sort(key=lambda r: r.relevance_score, reverse=True)
        return results

    def remove(self, policy_id: str) -> bool:
        return self._storage.delete(policy_id)

    def clear(self) -> int:
        """Remove every policy; return how many were removed."""
        return self._storage.clear()

    def categories(self) -> list[str]:
        """Distinct non-empty categories in first-seen order."""
        seen: dict[str, None] = {}
        for policy in self._storage.values():
            if policy.category:
                seen.setdefault(policy.category, None)
        return list(seen)

    @property
    def count(self) -> int:
        return len(self._storage)
