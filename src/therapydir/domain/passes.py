"""Whole-store passes run outside of a source scan."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from therapydir.domain.model import Category, City, Neighborhood
from therapydir.domain.resolution import ProviderResolver
from therapydir.domain.slugs import generate_slug, slugify
from therapydir.domain.taxonomy import (
    GENERALIST_SCORE,
    CategoryTable,
    Matcher,
    SubstringMatcher,
    entity_text,
)

if TYPE_CHECKING:
    from therapydir.config.reference_data import ReferenceData
    from therapydir.config.taxonomy import TaxonomyConfig
    from therapydir.domain.ports.unit_of_work import DirectoryUnitOfWork

log = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], "DirectoryUnitOfWork"]


@dataclass(slots=True)
class ClassificationReport:
    providers: int = 0
    direct: int = 0
    inferred: int = 0
    total_links: int = 0

    @property
    def links(self) -> int:
        return self.direct + self.inferred


@dataclass(slots=True)
class AssignmentReport:
    neighborhoods: int = 0
    assigned: int = 0


@dataclass(slots=True)
class SeedReport:
    cities: int = 0
    neighborhoods: int = 0
    categories_created: int = 0
    categories_extended: int = 0


@dataclass(slots=True)
class CitySummary:
    city: City
    providers: int
    by_neighborhood: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)


def classify_providers(
    unit_of_work_factory: UnitOfWorkFactory,
    taxonomy: TaxonomyConfig,
    *,
    matcher: Matcher | None = None,
) -> ClassificationReport:
    """Re-score every provider against every category."""

    active_matcher = matcher or SubstringMatcher()
    report = ClassificationReport()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        table = CategoryTable.from_config(repositories.categories.list_all(), taxonomy)
        resolver = ProviderResolver(repositories)
        providers = repositories.providers.list_all()
        log.info(
            "Classifying %s providers against %s categories",
            len(providers),
            len(table.categories),
        )
        for provider in providers:
            report.providers += 1
            text = entity_text(provider.name, provider.raw_payload)
            for match in active_matcher.classify(text, table):
                resolver.link_category(provider.id, match.category.id, match.score)
                if match.score == GENERALIST_SCORE:
                    report.inferred += 1
                else:
                    report.direct += 1
        uow.commit()
        report.total_links = repositories.provider_categories.count()

    log.info(
        "Classification complete: providers=%s direct=%s inferred=%s total_links=%s",
        report.providers,
        report.direct,
        report.inferred,
        report.total_links,
    )
    return report


def assign_neighborhoods(
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    force: bool = False,
) -> AssignmentReport:
    """Place providers in the neighborhoods their addresses name."""

    report = AssignmentReport()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        resolver = ProviderResolver(repositories)
        for neighborhood in repositories.neighborhoods.list_all():
            report.neighborhoods += 1
            for provider in repositories.providers.list_for_city(neighborhood.city_id):
                if resolver.assign_neighborhood(provider, neighborhood, force=force):
                    report.assigned += 1
                    log.info("Linked %s -> %s", provider.name, neighborhood.name)
        uow.commit()

    log.info(
        "Assigned %s providers across %s neighborhoods",
        report.assigned,
        report.neighborhoods,
    )
    return report


def repair_slugs(unit_of_work_factory: UnitOfWorkFactory) -> int:
    """Regenerate slugs with the current rules; returns how many changed."""

    updated = 0
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        cities = {city.id: city for city in repositories.cities.list_all()}
        providers = repositories.providers
        for provider in providers.list_all():
            city = cities.get(provider.city_id)
            if city is None:
                continue
            try:
                candidate = generate_slug(
                    provider.name, city.scope_key, provider.source_id, index=providers
                )
            except ValueError:
                log.warning("Cannot derive a slug for %s", provider.source_id)
                continue
            if candidate == provider.slug:
                continue
            holder = providers.source_id_for_slug(candidate)
            if holder not in (None, provider.source_id):
                log.warning(
                    "Slug %s already used by %s; keeping %s", candidate, holder, provider.slug
                )
                continue
            log.info("Fixing slug: %s -> %s", provider.slug, candidate)
            provider.slug = candidate
            updated += 1
        uow.commit()

    log.info("Slug repair complete. Fixed %s providers.", updated)
    return updated


def seed_reference_data(
    unit_of_work_factory: UnitOfWorkFactory,
    data: ReferenceData,
) -> SeedReport:
    """Insert missing cities, neighborhoods and categories; extend vocabularies."""

    report = SeedReport()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories

        for seed in data.categories:
            category = repositories.categories.get_by_slug(seed.slug)
            if category is None:
                category = Category(slug=seed.slug, name=seed.name)
                category.add_synonyms(seed.synonyms)
                category.add_keywords(seed.keywords)
                repositories.categories.add(category)
                report.categories_created += 1
                continue
            extended = category.add_synonyms(seed.synonyms)
            extended = category.add_keywords(seed.keywords) or extended
            if extended:
                report.categories_extended += 1

        for seed in data.cities:
            city_slug = slugify(seed.name)
            city = repositories.cities.get_by_slug(seed.state, city_slug)
            if city is None:
                city = City(state=seed.state, slug=city_slug, name=seed.name)
                repositories.cities.add(city)
                report.cities += 1
                log.info("Created city %s, %s", city.name, city.state)
            for name in seed.neighborhoods:
                slug = slugify(name)
                if repositories.neighborhoods.get_by_slug(city.id, slug) is not None:
                    continue
                repositories.neighborhoods.add(Neighborhood(city_id=city.id, slug=slug, name=name))
                report.neighborhoods += 1

        uow.commit()

    log.info(
        "Seed complete: cities=%s neighborhoods=%s categories=%s (+%s extended)",
        report.cities,
        report.neighborhoods,
        report.categories_created,
        report.categories_extended,
    )
    return report


def summarize_city(unit_of_work_factory: UnitOfWorkFactory, city: City) -> CitySummary:
    """Provider counts for a city, per neighborhood and per category name."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        neighborhoods = {
            hood.id: hood.name for hood in repositories.neighborhoods.list_for_city(city.id)
        }
        categories = {
            item.id: item.name for item in repositories.categories.list_for_city(city.id)
        }
        providers = repositories.providers
        by_neighborhood = {
            neighborhoods[hood_id]: count
            for hood_id, count in providers.counts_by_neighborhood(city.id).items()
            if hood_id in neighborhoods
        }
        by_category = {
            categories[category_id]: count
            for category_id, count in providers.counts_by_category(city.id).items()
            if category_id in categories
        }
        return CitySummary(
            city=city,
            providers=providers.count_for_city(city.id),
            by_neighborhood=by_neighborhood,
            by_category=by_category,
        )
