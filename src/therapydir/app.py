"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from therapydir.adapters.places import PlacesClient, normalize
from therapydir.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from therapydir.config import DEFAULT_REFERENCE_DATA, get_scan_settings, load_taxonomy_config
from therapydir.config.scan import DEFAULT_NEIGHBORHOOD_QUERY, DEFAULT_SEARCH_QUERIES
from therapydir.domain.passes import (
    AssignmentReport,
    CitySummary,
    ClassificationReport,
    SeedReport,
    assign_neighborhoods,
    classify_providers,
    repair_slugs,
    seed_reference_data,
    summarize_city,
)
from therapydir.domain.ports.unit_of_work import DirectoryUnitOfWork
from therapydir.domain.scan import ScanReport, ScanRunner, city_scopes, neighborhood_scopes
from therapydir.domain.slugs import slugify

if TYPE_CHECKING:
    from collections.abc import Sequence

    from therapydir.config import ReferenceData, ScanSettings
    from therapydir.domain.model import City
    from therapydir.domain.ports.fetching import PlaceSource
    from therapydir.domain.scan import ScanScope

UnitOfWorkFactory = Callable[[], DirectoryUnitOfWork]


log = getLogger(__name__)


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _find_city(unit_of_work_factory: UnitOfWorkFactory, name: str, state: str) -> City:
    with unit_of_work_factory() as uow:
        city = uow.repositories.cities.get_by_slug(state, slugify(name))
    if city is None:
        raise ValueError(f"Unknown city {name}, {state}; run the seed command first")
    return city


def _run_scan(
    scopes: Sequence[ScanScope],
    *,
    source: PlaceSource | None,
    unit_of_work_factory: UnitOfWorkFactory,
    settings: ScanSettings,
    loop: bool,
    should_stop: Callable[[], bool] | None,
    sleep: Callable[[float], None] | None,
) -> ScanReport:
    runner_options: dict[str, object] = {}
    if should_stop is not None:
        runner_options["should_stop"] = should_stop
    if sleep is not None:
        runner_options["sleep"] = sleep
    places: PlacesClient | None = None
    if source is None:
        places = source = PlacesClient()
    runner = ScanRunner(
        source=source,
        unit_of_work_factory=unit_of_work_factory,
        normalizer=normalize,
        settings=settings,
        taxonomy=load_taxonomy_config(),
        **runner_options,  # type: ignore[arg-type]
    )
    try:
        if loop:
            return runner.run_loop(scopes)
        return runner.run(scopes)
    finally:
        if places is not None:
            places.close()


def seed_directory(
    *,
    data: ReferenceData = DEFAULT_REFERENCE_DATA,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SeedReport:
    """Store the default cities, neighborhoods and categories."""

    return seed_reference_data(_unit_of_work_factory(unit_of_work_factory), data)


def scan_city(  # noqa: PLR0913
    city_name: str,
    state: str,
    *,
    queries: Sequence[str] | None = None,
    max_results: int | None = None,
    loop: bool = False,
    source: PlaceSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    should_stop: Callable[[], bool] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> ScanReport:
    """Scan a seeded city once per search term."""

    factory = _unit_of_work_factory(unit_of_work_factory)
    city = _find_city(factory, city_name, state)
    settings = get_scan_settings(max_results=max_results)
    scopes = city_scopes(city, queries or DEFAULT_SEARCH_QUERIES)
    log.info(
        "Starting scan of %s, %s: queries=%s, max_results=%s, loop=%s",
        city.name,
        city.state,
        len(scopes),
        settings.max_results,
        loop,
    )
    return _run_scan(
        scopes,
        source=source,
        unit_of_work_factory=factory,
        settings=settings,
        loop=loop,
        should_stop=should_stop,
        sleep=sleep,
    )


def scan_neighborhoods(  # noqa: PLR0913
    *,
    city_name: str | None = None,
    state: str | None = None,
    query: str = DEFAULT_NEIGHBORHOOD_QUERY,
    max_results: int | None = None,
    loop: bool = False,
    source: PlaceSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    should_stop: Callable[[], bool] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> ScanReport:
    """Scan every seeded neighborhood, or only those of one city."""

    factory = _unit_of_work_factory(unit_of_work_factory)
    if city_name is not None:
        if state is None:
            raise ValueError("A state is required when a city is given")
        city = _find_city(factory, city_name, state)
        cities = {city.id: city}
    else:
        with factory() as uow:
            cities = {city.id: city for city in uow.repositories.cities.list_all()}

    with factory() as uow:
        neighborhoods = [
            hood for hood in uow.repositories.neighborhoods.list_all() if hood.city_id in cities
        ]

    scopes = neighborhood_scopes(cities, neighborhoods, query)
    log.info("Starting neighborhood scan: scopes=%s, loop=%s", len(scopes), loop)
    return _run_scan(
        scopes,
        source=source,
        unit_of_work_factory=factory,
        settings=get_scan_settings(max_results=max_results),
        loop=loop,
        should_stop=should_stop,
        sleep=sleep,
    )


def classify_all(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> ClassificationReport:
    return classify_providers(_unit_of_work_factory(unit_of_work_factory), load_taxonomy_config())


def assign_all(
    *,
    force: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> AssignmentReport:
    return assign_neighborhoods(_unit_of_work_factory(unit_of_work_factory), force=force)


def repair_all_slugs(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> int:
    return repair_slugs(_unit_of_work_factory(unit_of_work_factory))


def city_stats(
    *,
    city_name: str | None = None,
    state: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[CitySummary]:
    """Provider counts for one city, or for every seeded city."""

    factory = _unit_of_work_factory(unit_of_work_factory)
    if city_name is not None:
        if state is None:
            raise ValueError("A state is required when a city is given")
        cities = [_find_city(factory, city_name, state)]
    else:
        with factory() as uow:
            cities = list(uow.repositories.cities.list_all())
    return [summarize_city(factory, city) for city in cities]
