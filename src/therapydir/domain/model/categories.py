"""Therapy categories and their matching vocabulary."""

from __future__ import annotations

from dataclasses import dataclass

from .base import Entity


def _merge(existing: tuple[str, ...], incoming: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    seen = {item.lower() for item in existing}
    merged = list(existing)
    for item in incoming:
        cleaned = item.strip().lower()
        if cleaned and cleaned not in seen:
            merged.append(cleaned)
            seen.add(cleaned)
    return tuple(merged)


@dataclass(eq=False, kw_only=True)
class Category(Entity):
    """A therapy type. Synonyms and keywords only ever grow."""

    slug: str
    name: str
    synonyms: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()

    def add_synonyms(self, synonyms: tuple[str, ...] | list[str]) -> bool:
        merged = _merge(self.synonyms, synonyms)
        changed = merged != self.synonyms
        self.synonyms = merged
        return changed

    def add_keywords(self, keywords: tuple[str, ...] | list[str]) -> bool:
        merged = _merge(self.keywords, keywords)
        changed = merged != self.keywords
        self.keywords = merged
        return changed
