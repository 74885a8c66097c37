"""Cities and the neighborhoods inside them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import Entity

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class City(Entity):
    state: str
    slug: str
    name: str

    def __post_init__(self) -> None:
        self.state = self.state.strip().upper()

    @property
    def scope_key(self) -> str:
        """Disambiguator used when two providers share a name."""
        return self.slug


@dataclass(eq=False, kw_only=True)
class Neighborhood(Entity):
    city_id: UUID
    slug: str
    name: str

    def belongs_to(self, city_id: UUID) -> bool:
        return self.city_id == city_id
