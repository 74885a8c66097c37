"""Keyword heuristics that link providers to therapy categories.

Matching is plain case-insensitive substring containment. It accepts false
positives (a street named after a neighborhood, "loss" inside "glossary") in
exchange for needing no model; ``Matcher`` isolates it so a stricter strategy can
replace it without touching the resolver.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Final, Protocol, cast

if TYPE_CHECKING:
    from collections.abc import Sequence

    from therapydir.config.taxonomy import TaxonomyConfig
    from therapydir.domain.model import Category

log = logging.getLogger(__name__)

DIRECT_MATCH_SCORE: Final[float] = 0.9
GENERALIST_SCORE: Final[float] = 0.6

_TYPE_HINT_KEYS: Final[tuple[str, ...]] = ("types", "primaryType", "primaryTypeDisplayName")


def _no_keywords() -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class CategoryTable:
    """Everything ``classify`` needs: categories plus the heuristic tables."""

    categories: Sequence[Category]
    generalist_keywords: tuple[str, ...] = ()
    core_categories: frozenset[str] = frozenset()
    specific_keywords: Mapping[str, tuple[str, ...]] = field(default_factory=_no_keywords)

    @classmethod
    def from_config(cls, categories: Iterable[Category], config: TaxonomyConfig) -> CategoryTable:
        return cls(
            categories=tuple(categories),
            generalist_keywords=config.generalist_keywords,
            core_categories=config.core_categories,
            specific_keywords=config.specific_keywords,
        )

    def is_core(self, category: Category) -> bool:
        core = {item.lower() for item in self.core_categories}
        return category.name.lower() in core or category.slug.lower() in core

    def keywords_for(self, category: Category) -> frozenset[str]:
        keywords = {category.name, *category.synonyms, *category.keywords}
        for key in (category.name, category.slug):
            keywords.update(self.specific_keywords.get(key, ()))
        return frozenset(keyword.lower() for keyword in keywords if keyword.strip())


@dataclass(frozen=True, slots=True)
class CategoryMatch:
    category: Category
    score: float


class Matcher(Protocol):
    def classify(self, entity_text: str, table: CategoryTable) -> list[CategoryMatch]: ...


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords if keyword)


def mentions(text: str | None, name: str) -> bool:
    """Return whether ``text`` contains ``name``, ignoring case."""

    if not text or not name.strip():
        return False
    return name.strip().lower() in text.lower()


def is_generalist(entity_text: str, keywords: Iterable[str]) -> bool:
    return contains_any(entity_text, keywords)


def classify(entity_text: str, table: CategoryTable) -> list[CategoryMatch]:
    """Score every category against ``entity_text``.

    Direct keyword evidence scores ``DIRECT_MATCH_SCORE``. Without it, a generalist
    practice is inferred to cover the core categories at ``GENERALIST_SCORE``.
    Categories with neither are left out. Results are ordered by category slug.
    """

    text = entity_text.lower()
    generalist = is_generalist(text, table.generalist_keywords)
    matches: list[CategoryMatch] = []
    for category in sorted(table.categories, key=lambda item: item.slug):
        if contains_any(text, table.keywords_for(category)):
            matches.append(CategoryMatch(category, DIRECT_MATCH_SCORE))
        elif generalist and table.is_core(category):
            matches.append(CategoryMatch(category, GENERALIST_SCORE))
    return matches


@dataclass(frozen=True, slots=True)
class SubstringMatcher:
    def classify(self, entity_text: str, table: CategoryTable) -> list[CategoryMatch]:
        return classify(entity_text, table)


def _type_hints(raw_payload: str | None) -> list[str]:
    if not raw_payload:
        return []
    try:
        payload = json.loads(raw_payload)
    except (TypeError, ValueError):
        log.debug("Ignoring unparsable raw payload for classification")
        return []
    if not isinstance(payload, dict):
        return []
    data = cast(dict[str, object], payload)

    hints: list[str] = []
    for key in _TYPE_HINT_KEYS:
        value = data.get(key)
        if isinstance(value, str):
            hints.append(value)
        elif isinstance(value, list):
            hints.extend(item for item in cast(list[object], value) if isinstance(item, str))
        elif isinstance(value, dict):
            text = cast(dict[str, object], value).get("text")
            if isinstance(text, str):
                hints.append(text)
    return hints


def entity_text(name: str, raw_payload: str | None = None) -> str:
    """Lower-cased name plus the type hints carried in the raw payload."""

    parts = [name, *(hint.replace("_", " ") for hint in _type_hints(raw_payload))]
    return " ".join(part.strip() for part in parts if part.strip()).lower()
