# backend/vendor_search/services/search/taxonomy_normalizer.py
"""
Taxonomy normalizer for vendor search.

Maps free-text queries onto the category → subcategory → service taxonomy
with a weighted rule set. Services outrank subcategories, which outrank
categories; the best match at the most specific level that matched wins.

The normalizer is pure: it scores against an in-memory TaxonomyIndex
snapshot and never touches the database, so it never fails at request time.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from vendor_search.core.constants import (
    TAXONOMY_CATEGORY,
    TAXONOMY_SERVICE,
    TAXONOMY_SUBCATEGORY,
)

logger = logging.getLogger(__name__)

DEFAULT_ICON = "🔧"


@dataclass(frozen=True)
class LevelWeights:
    name_exact: int
    keyword_exact: int
    name_contains_query: int
    query_contains_name: int
    keyword_contains_query: int
    query_contains_keyword: int
    token_partial: int
    # Divisor that turns the best score into a 0-1 confidence
    max_score: int


LEVEL_WEIGHTS: Dict[str, LevelWeights] = {
    TAXONOMY_SERVICE: LevelWeights(100, 80, 60, 50, 30, 25, 10, max_score=100),
    TAXONOMY_SUBCATEGORY: LevelWeights(90, 70, 50, 40, 25, 20, 8, max_score=90),
    TAXONOMY_CATEGORY: LevelWeights(80, 60, 40, 35, 20, 15, 5, max_score=80),
}

# Service first: the most specific level that matched supplies bestMatch
MATCH_PRIORITY: Tuple[str, ...] = (TAXONOMY_SERVICE, TAXONOMY_SUBCATEGORY, TAXONOMY_CATEGORY)


# ── Taxonomy snapshot ─────────────────────────────────────────────


@dataclass(frozen=True)
class TaxonomyNode:
    taxonomy_id: str
    entry_type: str
    name: str
    parent_id: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    icon: Optional[str] = None
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: object) -> "TaxonomyNode":
        keywords = getattr(row, "keywords", None) or []
        return cls(
            taxonomy_id=str(getattr(row, "taxonomy_id")),
            entry_type=str(getattr(row, "entry_type")),
            name=str(getattr(row, "name")),
            parent_id=getattr(row, "parent_id", None),
            keywords=tuple(str(k) for k in keywords),
            icon=getattr(row, "icon", None),
            sort_order=int(getattr(row, "sort_order", 0) or 0),
        )


class TaxonomyIndex:
    """Immutable in-memory view over the active taxonomy entries."""

    def __init__(self, nodes: Iterable[TaxonomyNode]) -> None:
        ordered = sorted(nodes, key=lambda n: (n.entry_type, n.sort_order, n.taxonomy_id))
        self._by_id: Dict[str, TaxonomyNode] = {n.taxonomy_id: n for n in ordered}
        by_type: Dict[str, List[TaxonomyNode]] = {}
        children: Dict[str, List[TaxonomyNode]] = {}
        for node in ordered:
            by_type.setdefault(node.entry_type, []).append(node)
            if node.parent_id:
                children.setdefault(node.parent_id, []).append(node)
        self._by_type: Dict[str, Tuple[TaxonomyNode, ...]] = {
            k: tuple(v) for k, v in by_type.items()
        }
        self._children: Dict[str, Tuple[TaxonomyNode, ...]] = {
            k: tuple(v) for k, v in children.items()
        }

    @classmethod
    def from_rows(cls, rows: Iterable[object]) -> "TaxonomyIndex":
        return cls(TaxonomyNode.from_row(row) for row in rows)

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, taxonomy_id: Optional[str]) -> Optional[TaxonomyNode]:
        if not taxonomy_id:
            return None
        return self._by_id.get(taxonomy_id)

    def of_type(self, entry_type: str) -> Tuple[TaxonomyNode, ...]:
        return self._by_type.get(entry_type, ())

    def children(self, taxonomy_id: str) -> Tuple[TaxonomyNode, ...]:
        return self._children.get(taxonomy_id, ())

    def find_by_keyword_or_name(self, entry_type: str, text: str) -> List[TaxonomyNode]:
        """
        Candidate entries for scoring.

        An entry qualifies when one of its keywords equals a query token or
        contains the whole query, or when its name contains the whole query.
        """
        normalized = (text or "").strip().lower()
        if not normalized:
            return []
        words = set(normalized.split())

        found: List[TaxonomyNode] = []
        for node in self.of_type(entry_type):
            keywords = [k.lower() for k in node.keywords]
            if (
                any(k in words for k in keywords)
                or any(normalized in k for k in keywords)
                or normalized in node.name.lower()
            ):
                found.append(node)
        return found

    def expand_to_services(self, taxonomy_id: str) -> Tuple[str, ...]:
        """Service ids at or below `taxonomy_id`; unknown ids pass through unchanged."""
        node = self.get(taxonomy_id)
        if node is None:
            return (taxonomy_id,)
        if node.entry_type == TAXONOMY_SERVICE:
            return (node.taxonomy_id,)

        services: List[str] = []
        pending = list(self.children(node.taxonomy_id))
        while pending:
            child = pending.pop(0)
            if child.entry_type == TAXONOMY_SERVICE:
                services.append(child.taxonomy_id)
            else:
                pending.extend(self.children(child.taxonomy_id))
        return tuple(services)

    def ancestors(self, taxonomy_id: str) -> Tuple[Optional[TaxonomyNode], Optional[TaxonomyNode]]:
        """(subcategory, category) above a service id, None where unknown."""
        node = self.get(taxonomy_id)
        if node is None or node.entry_type != TAXONOMY_SERVICE:
            return (None, None)
        subcategory = self.get(node.parent_id)
        category = self.get(subcategory.parent_id) if subcategory else None
        return (subcategory, category)


# ── Normalization result ──────────────────────────────────────────


@dataclass(frozen=True)
class TaxonomyMatch:
    taxonomy_id: str
    name: str
    entry_type: str
    score: int
    parent_id: Optional[str] = None
    icon: Optional[str] = None
    keywords: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "taxonomyId": self.taxonomy_id,
            "name": self.name,
            "type": self.entry_type,
            "parentId": self.parent_id,
            "icon": self.icon,
            "score": self.score,
        }


@dataclass(frozen=True)
class NormalizationResult:
    original_query: Optional[str]
    normalized_query: Optional[str] = None
    services: Tuple[TaxonomyMatch, ...] = ()
    subcategories: Tuple[TaxonomyMatch, ...] = ()
    categories: Tuple[TaxonomyMatch, ...] = ()
    best_match: Optional[TaxonomyMatch] = None
    confidence: float = 0.0
    match_type: str = "none"

    @classmethod
    def empty(cls, query: Optional[str]) -> "NormalizationResult":
        return cls(original_query=query)

    def is_low_confidence(self, threshold: float) -> bool:
        return self.confidence < threshold

    def category_ids(self, index: TaxonomyIndex) -> Tuple[str, ...]:
        """Service ids a vendor's service_type must belong to; empty means no filter."""
        if self.best_match is None:
            return ()
        if self.match_type == TAXONOMY_SERVICE:
            return tuple(m.taxonomy_id for m in self.services)
        return index.expand_to_services(self.best_match.taxonomy_id)


@dataclass(frozen=True)
class Suggestion:
    type: str
    taxonomy_id: str
    label: str
    icon: str
    score: int
    matched_keyword: Optional[str] = None
    parent_id: Optional[str] = None


# ── Normalizer ────────────────────────────────────────────────────


def _score(node: TaxonomyNode, normalized: str, words: Sequence[str], w: LevelWeights) -> int:
    name = node.name.lower()
    keywords = [k.lower() for k in node.keywords]
    score = 0

    if name == normalized:
        score += w.name_exact
    if normalized in keywords:
        score += w.keyword_exact
    if normalized in name:
        score += w.name_contains_query
    if name in normalized:
        score += w.query_contains_name

    for keyword in keywords:
        if normalized in keyword:
            score += w.keyword_contains_query
        if keyword in normalized:
            score += w.query_contains_keyword
        for word in words:
            if word in keyword or keyword in word:
                score += w.token_partial
    return score


class TaxonomyNormalizer:
    """Scores free text against a TaxonomyIndex."""

    def __init__(self, index: TaxonomyIndex) -> None:
        self.index = index

    def normalize(self, query: Optional[str]) -> NormalizationResult:
        """Never raises; empty or unmatched input yields a zero-confidence result."""
        if not query or not isinstance(query, str) or not query.strip():
            return NormalizationResult.empty(query)

        normalized = query.strip().lower()
        words = normalized.split()

        matches: Dict[str, Tuple[TaxonomyMatch, ...]] = {}
        for entry_type in MATCH_PRIORITY:
            matches[entry_type] = self._score_level(entry_type, normalized, words)

        best: Optional[TaxonomyMatch] = None
        match_type = "none"
        confidence = 0.0
        for entry_type in MATCH_PRIORITY:
            if matches[entry_type]:
                best = matches[entry_type][0]
                match_type = entry_type
                confidence = min(best.score / LEVEL_WEIGHTS[entry_type].max_score, 1.0)
                break

        logger.debug(
            "Normalized query %r -> %s (%s, confidence=%.2f)",
            query,
            best.taxonomy_id if best else None,
            match_type,
            confidence,
        )
        return NormalizationResult(
            original_query=query,
            normalized_query=best.name if best else normalized,
            services=matches[TAXONOMY_SERVICE],
            subcategories=matches[TAXONOMY_SUBCATEGORY],
            categories=matches[TAXONOMY_CATEGORY],
            best_match=best,
            confidence=round(confidence, 4),
            match_type=match_type,
        )

    def _score_level(
        self, entry_type: str, normalized: str, words: Sequence[str]
    ) -> Tuple[TaxonomyMatch, ...]:
        weights = LEVEL_WEIGHTS[entry_type]
        scored: List[Tuple[TaxonomyMatch, int]] = []
        for node in self.index.find_by_keyword_or_name(entry_type, normalized):
            score = _score(node, normalized, words, weights)
            if score <= 0:
                continue
            scored.append(
                (
                    TaxonomyMatch(
                        taxonomy_id=node.taxonomy_id,
                        name=node.name,
                        entry_type=entry_type,
                        score=score,
                        parent_id=node.parent_id,
                        icon=node.icon,
                        keywords=node.keywords,
                    ),
                    node.sort_order,
                )
            )
        scored.sort(key=lambda item: (-item[0].score, item[1], item[0].taxonomy_id))
        return tuple(match for match, _ in scored)

    def suggest(self, query: Optional[str], limit: int = 12) -> List[Suggestion]:
        """
        Autocomplete suggestions: up to 60% services, 30% subcategories and
        10% categories (each share rounded up), merged by score.
        """
        if not query or not query.strip() or limit <= 0:
            return []

        result = self.normalize(query)
        lowered = query.strip().lower()
        shares = (
            (TAXONOMY_SERVICE, result.services, 0.6),
            (TAXONOMY_SUBCATEGORY, result.subcategories, 0.3),
            (TAXONOMY_CATEGORY, result.categories, 0.1),
        )

        seen = set()
        suggestions: List[Suggestion] = []
        for entry_type, matches, share in shares:
            for match in matches[: math.ceil(limit * share)]:
                key = (entry_type, match.taxonomy_id)
                if key in seen:
                    continue
                seen.add(key)
                matched_keyword = next(
                    (k for k in match.keywords if lowered in k.lower() or k.lower() in lowered),
                    None,
                )
                suggestions.append(
                    Suggestion(
                        type=entry_type,
                        taxonomy_id=match.taxonomy_id,
                        label=match.name,
                        icon=match.icon or DEFAULT_ICON,
                        score=match.score,
                        matched_keyword=matched_keyword,
                        parent_id=match.parent_id,
                    )
                )

        # Stable sort keeps the service > subcategory > category order among ties
        suggestions.sort(key=lambda s: -s.score)
        return suggestions[:limit]
