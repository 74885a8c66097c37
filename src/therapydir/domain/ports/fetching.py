"""Ports for fetching place records from an external provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@dataclass(slots=True)
class PlacePage:
    """One page of raw place payloads plus the opaque token for the next page."""

    records: Sequence[Mapping[str, object]] = field(default_factory=tuple)
    next_page_token: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.records


@runtime_checkable
class PlaceSource(Protocol):
    """Text search over an external places catalogue.

    Implementations raise ``QuotaExceeded`` for quota or permission refusals and
    ``SourceApiError`` for any other failure.
    """

    def search(self, text_query: str, *, page_token: str | None = None) -> PlacePage: ...


__all__ = ["PlacePage", "PlaceSource"]
