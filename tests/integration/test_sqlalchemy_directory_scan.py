from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import pytest

from tests.helpers.directory import FakePlaceSource, make_place_payload, quota_error
from therapydir.adapters.places import normalize
from therapydir.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork  # noqa: TC001
from therapydir.config import TaxonomyConfig
from therapydir.config.scan import ScanSettings
from therapydir.domain.errors import QuotaExceeded
from therapydir.domain.model import City
from therapydir.domain.passes import classify_providers, repair_slugs, summarize_city
from therapydir.domain.scan import ScanRunner, city_scopes, neighborhood_scopes

UowFactory = Callable[[], SqlAlchemyUnitOfWork]


def _austin(factory: UowFactory) -> City:
    with factory() as uow:
        city = uow.repositories.cities.get_by_slug("TX", "austin")
    assert city is not None
    return city


def _runner(factory: UowFactory, source: FakePlaceSource) -> ScanRunner:
    return ScanRunner(
        source=source,
        unit_of_work_factory=factory,
        normalizer=normalize,
        settings=ScanSettings(page_delay=0.0, scope_delay=0.0),
        taxonomy=TaxonomyConfig(),
        sleep=lambda _seconds: None,
    )


def test_quota_mid_scope_keeps_committed_records(seeded_unit_of_work: UowFactory) -> None:
    austin = _austin(seeded_unit_of_work)
    first_page = [
        make_place_payload("ChIJ-a-0001", "Mindful Path Counseling"),
        make_place_payload("ChIJ-a-0002", "Mindful Path Counseling"),
    ]
    source = FakePlaceSource({"therapist in Austin, TX": [first_page, quota_error()]})

    with pytest.raises(QuotaExceeded):
        _runner(seeded_unit_of_work, source).run(city_scopes(austin, ["therapist"]))

    with seeded_unit_of_work() as uow:
        providers = uow.repositories.providers
        slugs = sorted(provider.slug for provider in providers.list_for_city(austin.id))
        assert slugs == ["mindful-path-counseling", "mindful-path-counseling-austin"]
        links = uow.repositories.provider_categories.count()
        assert links > 0


def test_rescan_is_idempotent(seeded_unit_of_work: UowFactory) -> None:
    austin = _austin(seeded_unit_of_work)
    payloads = [make_place_payload("ChIJ-a-0001", "Eastside Family Counseling", rating=4.0)]
    source = FakePlaceSource({"therapist in Austin, TX": [payloads]})
    runner = _runner(seeded_unit_of_work, source)

    runner.run(city_scopes(austin, ["therapist"]))
    with seeded_unit_of_work() as uow:
        links_after_first = uow.repositories.provider_categories.count()

    payloads[0]["rating"] = 4.6
    report = runner.run(city_scopes(austin, ["therapist"]))
    classify_providers(seeded_unit_of_work, TaxonomyConfig())

    with seeded_unit_of_work() as uow:
        providers = uow.repositories.providers.list_all()
        assert report.updated == 1
        assert len(providers) == 1
        assert providers[0].rating == 4.6
        assert uow.repositories.provider_categories.count() == links_after_first


def test_neighborhood_scan_assigns_and_summarizes(seeded_unit_of_work: UowFactory) -> None:
    austin = _austin(seeded_unit_of_work)
    with seeded_unit_of_work() as uow:
        hoods = [
            hood
            for hood in uow.repositories.neighborhoods.list_for_city(austin.id)
            if hood.slug == "hyde-park"
        ]
    payload = make_place_payload(formattedAddress="4500 Duval St, Hyde Park, Austin, TX")
    query = "mental health therapists in Hyde Park, Austin, TX"
    source = FakePlaceSource({query: [[payload]]})

    report = _runner(seeded_unit_of_work, source).run(
        neighborhood_scopes({austin.id: austin}, hoods, "mental health therapists")
    )
    summary = summarize_city(seeded_unit_of_work, austin)

    assert report.assigned == 1
    assert summary.providers == 1
    assert summary.by_neighborhood == {"Hyde Park": 1}
    assert summary.by_category


def test_repair_slugs_against_sqlite(seeded_unit_of_work: UowFactory) -> None:
    austin = _austin(seeded_unit_of_work)
    source = FakePlaceSource(
        {"therapist in Austin, TX": [[make_place_payload("ChIJ-a-0001", "Hill Country Wellness")]]}
    )
    _runner(seeded_unit_of_work, source).run(city_scopes(austin, ["therapist"]))
    with seeded_unit_of_work() as uow:
        provider = uow.repositories.providers.list_all()[0]
        provider.slug = "legacy_slug"
        uow.commit()

    assert repair_slugs(seeded_unit_of_work) == 1

    with seeded_unit_of_work() as uow:
        assert uow.repositories.providers.get_by_slug("hill-country-wellness") is not None
