"""URL slugs for providers.

Slugs are minted once per source id. ``generate_slug`` only reads the slug index;
callers persist the result.
"""

from __future__ import annotations

import re
import secrets
import unicodedata
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from therapydir.domain.ports.persistence import SlugIndex

SOURCE_SUFFIX_LENGTH: Final[int] = 4
RETRY_SUFFIX_BYTES: Final[int] = 3

_SEPARATORS = re.compile(r"[\s_/]+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-{2,}")
_URL_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def slugify(text: str) -> str:
    """Lowercase, ASCII-fold and hyphenate ``text`` into ``[a-z0-9-]``."""

    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    lowered = folded.lower().replace("&", " and ")
    hyphenated = _SEPARATORS.sub("-", lowered)
    cleaned = _DISALLOWED.sub("", hyphenated)
    return _REPEATED_HYPHENS.sub("-", cleaned).strip("-")


def _available(slug: str, source_id: str, index: SlugIndex) -> bool:
    holder = index.source_id_for_slug(slug)
    return holder is None or holder == source_id


def generate_slug(name: str, scope_key: str, source_id: str, *, index: SlugIndex) -> str:
    """Return a slug for ``name`` that is free or already owned by ``source_id``.

    Tries the bare name, then name plus scope, then appends the tail of the source
    id as-is. The last tier is returned without checking; the write path reports the
    residual collision.
    """

    base = slugify(name)
    if not base:
        raise ValueError(f"Name {name!r} does not produce a usable slug")
    if _available(base, source_id, index):
        return base

    scoped = slugify(f"{name}-{scope_key}")
    if _available(scoped, source_id, index):
        return scoped

    # raw id tail; case, "_" and "-" are significant
    tail = _URL_UNSAFE.sub("", source_id[-SOURCE_SUFFIX_LENGTH:])
    return f"{scoped}-{tail}" if tail else scoped


def disambiguate(slug: str) -> str:
    """Append a short random suffix, used after an insert lost a slug race."""

    return f"{slug}-{secrets.token_hex(RETRY_SUFFIX_BYTES)}"
