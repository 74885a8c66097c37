"""Heuristic tables for provider classification.

The generalist keyword list and the core category set are configuration rather
than reference data: they describe how the matcher infers links, not what the
categories are. Per-category keywords live on the persisted categories; the
``specific_keywords`` mapping here is layered on top of them so a deployment can
tune matching without reseeding.

A TOML file can override any of the tables::

    generalist_keywords = ["psychologist", "counselor"]
    core_categories = ["Anxiety Therapy"]

    [specific_keywords]
    "Family Therapy" = ["family", "parenting"]
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, cast

from .errors import ConfigurationError

TAXONOMY_FILE_ENV = "THERAPYDIR_TAXONOMY_FILE"

DEFAULT_GENERALIST_KEYWORDS: tuple[str, ...] = (
    "psychologist",
    "psychotherapist",
    "counselor",
    "therapist",
    "mental health",
    "social worker",
    "lcsw",
    "lmft",
    "psychiatrist",
)

# Therapies most generalists treat
DEFAULT_CORE_CATEGORIES: frozenset[str] = frozenset(
    {
        "Anxiety Therapy",
        "Depression Therapy",
        "Stress Management",
        "Individual Therapy",
        "Cognitive Behavioral Therapy",
    }
)


def _empty_keywords() -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class TaxonomyConfig:
    generalist_keywords: tuple[str, ...] = DEFAULT_GENERALIST_KEYWORDS
    core_categories: frozenset[str] = DEFAULT_CORE_CATEGORIES
    specific_keywords: Mapping[str, tuple[str, ...]] = field(default_factory=_empty_keywords)


def _string_list(value: object, key: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigurationError(f"Taxonomy option '{key}' must be a list of strings")
    items = cast(list[object], value)
    if not all(isinstance(item, str) for item in items):
        raise ConfigurationError(f"Taxonomy option '{key}' must be a list of strings")
    return tuple(cast(list[str], items))


def parse_taxonomy_document(document: Mapping[str, Any]) -> TaxonomyConfig:
    """Build a config from a parsed TOML document, keeping defaults for absent tables."""

    defaults = TaxonomyConfig()
    generalist = defaults.generalist_keywords
    core = defaults.core_categories
    specific: dict[str, tuple[str, ...]] = {}

    if "generalist_keywords" in document:
        generalist = _string_list(document["generalist_keywords"], "generalist_keywords")
    if "core_categories" in document:
        core = frozenset(_string_list(document["core_categories"], "core_categories"))
    if "specific_keywords" in document:
        table = document["specific_keywords"]
        if not isinstance(table, dict):
            raise ConfigurationError("Taxonomy option 'specific_keywords' must be a table")
        for name, keywords in cast(dict[str, object], table).items():
            specific[name] = _string_list(keywords, f"specific_keywords.{name}")

    return TaxonomyConfig(
        generalist_keywords=generalist,
        core_categories=core,
        specific_keywords=MappingProxyType(specific),
    )


def load_taxonomy_config(path: Path | None = None) -> TaxonomyConfig:
    """Load the taxonomy tables from ``path`` or ``$THERAPYDIR_TAXONOMY_FILE``."""

    if path is None:
        env_path = os.getenv(TAXONOMY_FILE_ENV)
        if not env_path:
            return TaxonomyConfig()
        path = Path(env_path)

    try:
        with path.expanduser().open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Taxonomy file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid taxonomy file {path}: {exc}") from exc
    return parse_taxonomy_document(document)
