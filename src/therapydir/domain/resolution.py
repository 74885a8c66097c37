"""Resolve normalized records against the provider store.

The source id is the dedup key. New providers get a slug from the three-tier
generator; a lost slug race is retried once with a random suffix.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from therapydir.domain.errors import EntityResolutionError, SlugCollision
from therapydir.domain.model import Provider
from therapydir.domain.ports.persistence import InsertStatus
from therapydir.domain.slugs import disambiguate, generate_slug
from therapydir.domain.taxonomy import mentions

if TYPE_CHECKING:
    from uuid import UUID

    from therapydir.domain.model import City, Neighborhood, NormalizedRecord, ProviderCategory
    from therapydir.domain.ports.unit_of_work import DirectoryRepositories

log = logging.getLogger(__name__)

MAX_INSERT_ATTEMPTS: Final[int] = 2


@dataclass(frozen=True, slots=True)
class UpsertResult:
    provider: Provider
    created: bool


class ProviderResolver:
    """Idempotent writes for providers, category links and neighborhood assignment."""

    def __init__(self, repositories: DirectoryRepositories) -> None:
        self.repositories = repositories

    def upsert_entity(
        self,
        record: NormalizedRecord,
        *,
        city: City,
        scope_key: str | None = None,
    ) -> UpsertResult:
        providers = self.repositories.providers
        existing = providers.get_by_source_id(record.source_id)
        if existing is not None:
            return self._update(existing, record, city)

        try:
            slug = generate_slug(
                record.name,
                scope_key or city.scope_key,
                record.source_id,
                index=providers,
            )
        except ValueError as exc:
            raise EntityResolutionError(str(exc)) from exc

        for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
            provider = Provider.from_record(record, slug=slug, city_id=city.id)
            result = providers.try_insert(provider)
            if result.status is InsertStatus.INSERTED:
                return UpsertResult(provider, created=True)
            if result.status is InsertStatus.SOURCE_CONFLICT:
                # another writer stored this source id first
                winner = providers.get_by_source_id(record.source_id)
                if winner is None:
                    raise EntityResolutionError(
                        f"Source id {record.source_id!r} reported as duplicate but not found"
                    )
                return self._update(winner, record, city)
            if result.status is InsertStatus.FAILED:
                raise EntityResolutionError(
                    f"Could not insert provider {record.source_id!r}: {result.error}"
                ) from result.error
            log.warning(
                "Slug %s taken while inserting %s (attempt %s/%s)",
                slug,
                record.source_id,
                attempt,
                MAX_INSERT_ATTEMPTS,
            )
            if attempt < MAX_INSERT_ATTEMPTS:
                slug = disambiguate(slug)

        raise SlugCollision(slug, source_id=record.source_id)

    def _update(self, provider: Provider, record: NormalizedRecord, city: City) -> UpsertResult:
        if provider.city_id != city.id:
            log.debug(
                "Provider %s seen from another city scope; keeping its original city",
                provider.slug,
            )
        provider.refresh(record)
        return UpsertResult(provider, created=False)

    def link_category(self, provider_id: UUID, category_id: UUID, score: float) -> ProviderCategory:
        """Create the (provider, category) link or overwrite its score."""

        return self.repositories.provider_categories.upsert(provider_id, category_id, score)

    def assign_neighborhood(
        self,
        provider: Provider,
        neighborhood: Neighborhood,
        *,
        force: bool = False,
    ) -> bool:
        """Point ``provider`` at ``neighborhood`` when its address names it.

        Never crosses cities. A provider already placed elsewhere stays put unless
        ``force`` is set, so overlapping names do not flap between runs.
        """

        if not neighborhood.belongs_to(provider.city_id):
            return False
        if not mentions(provider.address, neighborhood.name):
            return False
        if provider.neighborhood_id == neighborhood.id:
            return False
        if provider.neighborhood_id is not None and not force:
            return False
        provider.neighborhood_id = neighborhood.id
        return True
