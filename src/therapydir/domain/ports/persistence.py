"""Ports for persisting domain aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from therapydir.domain.model import (
        Category,
        City,
        Neighborhood,
        Provider,
        ProviderCategory,
    )


class InsertStatus(StrEnum):
    INSERTED = "inserted"
    SLUG_CONFLICT = "slug_conflict"
    SOURCE_CONFLICT = "source_conflict"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InsertResult:
    """Outcome of a guarded insert; unique violations are values, not exceptions."""

    status: InsertStatus
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is InsertStatus.INSERTED


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CityRepository(Repository["City"], Protocol):
    def get(self, city_id: UUID) -> City | None: ...

    def get_by_slug(self, state: str, slug: str) -> City | None: ...

    def list_all(self) -> Sequence[City]: ...


@runtime_checkable
class NeighborhoodRepository(Repository["Neighborhood"], Protocol):
    def get(self, neighborhood_id: UUID) -> Neighborhood | None: ...

    def get_by_slug(self, city_id: UUID, slug: str) -> Neighborhood | None: ...

    def list_for_city(self, city_id: UUID) -> Sequence[Neighborhood]: ...

    def list_all(self) -> Sequence[Neighborhood]: ...


@runtime_checkable
class CategoryRepository(Repository["Category"], Protocol):
    def get_by_slug(self, slug: str) -> Category | None: ...

    def list_all(self) -> Sequence[Category]: ...

    def list_for_city(self, city_id: UUID) -> Sequence[Category]: ...


@runtime_checkable
class SlugIndex(Protocol):
    """Read-only view over the persisted provider slugs."""

    def source_id_for_slug(self, slug: str) -> str | None: ...


@runtime_checkable
class ProviderRepository(SlugIndex, Protocol):
    def get(self, provider_id: UUID) -> Provider | None: ...

    def get_by_source_id(self, source_id: str) -> Provider | None: ...

    def get_by_slug(self, slug: str) -> Provider | None: ...

    def try_insert(self, provider: Provider) -> InsertResult: ...

    def list_all(self) -> Sequence[Provider]: ...

    def list_for_city(self, city_id: UUID) -> Sequence[Provider]: ...

    def top_by_city(self, city_id: UUID, *, limit: int | None = None) -> Sequence[Provider]: ...

    def top_by_city_and_category(
        self, city_id: UUID, category_id: UUID, *, limit: int | None = None
    ) -> Sequence[Provider]: ...

    def top_by_city_and_neighborhood(
        self, city_id: UUID, neighborhood_id: UUID, *, limit: int | None = None
    ) -> Sequence[Provider]: ...

    def count_for_city(self, city_id: UUID) -> int: ...

    def count_for_neighborhood(self, neighborhood_id: UUID) -> int: ...

    def counts_by_city(self) -> dict[UUID, int]: ...

    def counts_by_neighborhood(self, city_id: UUID) -> dict[UUID, int]: ...

    def counts_by_category(self, city_id: UUID) -> dict[UUID, int]: ...


@runtime_checkable
class ProviderCategoryRepository(Repository["ProviderCategory"], Protocol):
    def get(self, provider_id: UUID, category_id: UUID) -> ProviderCategory | None: ...

    def upsert(
        self, provider_id: UUID, category_id: UUID, confidence: float
    ) -> ProviderCategory:
        """Store the link for the pair, overwriting the confidence of an existing one."""
        ...

    def list_for_provider(self, provider_id: UUID) -> Sequence[ProviderCategory]: ...

    def count(self) -> int: ...
