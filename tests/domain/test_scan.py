from __future__ import annotations

import pytest

from tests.helpers.directory import (
    FakePlaceSource,
    FakeUnitOfWork,
    make_place_payload,
    quota_error,
    seed_city,
    source_error,
)
from therapydir.adapters.places import normalize
from therapydir.config.scan import ScanSettings
from therapydir.config.taxonomy import TaxonomyConfig
from therapydir.domain.errors import QuotaExceeded, StoreError
from therapydir.domain.model import Category, City
from therapydir.domain.scan import ScanRunner, city_scopes, neighborhood_scopes

THERAPIST = "therapist in Austin, TX"
COUNSELOR = "counselor in Austin, TX"


def _payloads(prefix: str, count: int) -> list[dict[str, object]]:
    return [
        make_place_payload(f"ChIJ-{prefix}-{index:04d}", f"{prefix.title()} Practice {index}")
        for index in range(count)
    ]


class _Sleeps:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def austin(uow: FakeUnitOfWork) -> City:
    return seed_city(uow, neighborhoods=("Hyde Park",))


def _runner(
    uow: FakeUnitOfWork,
    source: FakePlaceSource,
    *,
    sleep: _Sleeps | None = None,
    **settings: object,
) -> ScanRunner:
    return ScanRunner(
        source=source,
        unit_of_work_factory=uow,
        normalizer=normalize,
        settings=ScanSettings(**settings),  # type: ignore[arg-type]
        sleep=sleep or _Sleeps(),
    )


def test_run_follows_page_tokens_and_pauses(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [_payloads("a", 3), _payloads("b", 2)]})
    sleeps = _Sleeps()
    runner = _runner(uow, source, sleep=sleeps, page_delay=2.0, scope_delay=1.0)

    report = runner.run(city_scopes(austin, ["therapist"]))

    assert source.calls == [(THERAPIST, None), (THERAPIST, "1")]
    assert report.pages == 2
    assert report.created == 5
    assert report.scopes_completed == 1
    assert sleeps.calls == [2.0, 2.0]
    assert uow.commits == 5
    assert len(uow.repositories.providers.list_all()) == 5


def test_rescan_updates_instead_of_duplicating(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [_payloads("a", 3)]})
    runner = _runner(uow, source)

    runner.run(city_scopes(austin, ["therapist"]))
    report = runner.run(city_scopes(austin, ["therapist"]))

    assert report.created == 0
    assert report.updated == 3
    assert len(uow.repositories.providers.list_all()) == 3


def test_run_caps_stored_records_per_scope(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [_payloads("a", 3), _payloads("b", 3)]})
    runner = _runner(uow, source, max_results=4)

    report = runner.run(city_scopes(austin, ["therapist"]))

    assert report.created == 4
    assert len(source.calls) == 2


def test_empty_page_ends_scope(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [[]]})
    runner = _runner(uow, source)

    report = runner.run(city_scopes(austin, ["therapist"]))

    assert report.scopes_completed == 1
    assert report.stored == 0
    assert uow.repositories.providers.list_all() == []


def test_unusable_records_are_skipped(uow: FakeUnitOfWork, austin: City) -> None:
    broken = {"displayName": {"text": "No Id Clinic"}}
    unsluggable = make_place_payload("ChIJ-x-0001", "???")
    source = FakePlaceSource({THERAPIST: [[broken, unsluggable, *_payloads("a", 1)]]})
    runner = _runner(uow, source)

    report = runner.run(city_scopes(austin, ["therapist"]))

    assert report.fetched == 3
    assert report.skipped == 2
    assert report.created == 1
    assert uow.rollbacks == 1


def test_rejected_commit_skips_only_that_record(uow: FakeUnitOfWork, austin: City) -> None:
    uow.commit_errors.append(StoreError("provider_category primary key taken"))
    source = FakePlaceSource({THERAPIST: [_payloads("a", 3)]})
    runner = _runner(uow, source)

    report = runner.run(city_scopes(austin, ["therapist"]))

    assert report.scopes_completed == 1
    assert report.skipped == 1
    assert report.created == 2
    assert uow.commits == 2
    assert uow.rollbacks == 1


def test_quota_error_halts_run_and_keeps_earlier_commits(
    uow: FakeUnitOfWork, austin: City
) -> None:
    source = FakePlaceSource(
        {
            THERAPIST: [_payloads("a", 2), quota_error()],
            COUNSELOR: [_payloads("b", 2)],
        }
    )
    runner = _runner(uow, source)

    with pytest.raises(QuotaExceeded) as excinfo:
        runner.run(city_scopes(austin, ["therapist", "counselor"]))

    report = excinfo.value.report
    assert report is not None
    assert report.quota_exceeded
    assert report.created == 2
    assert uow.commits == 2
    assert all(query == THERAPIST for query, _ in source.calls)
    assert len(uow.repositories.providers.list_all()) == 2


def test_source_error_abandons_scope_only(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource(
        {
            THERAPIST: [_payloads("a", 1), source_error()],
            COUNSELOR: [_payloads("b", 2)],
        }
    )
    runner = _runner(uow, source)

    report = runner.run(city_scopes(austin, ["therapist", "counselor"]))

    assert report.scopes_failed == 1
    assert report.scopes_completed == 1
    assert report.created == 3


def test_inline_classification_links_categories(uow: FakeUnitOfWork, austin: City) -> None:
    uow.repositories.categories.add(
        Category(slug="anxiety-therapy", name="Anxiety Therapy", keywords=("anxiety",))
    )
    uow.repositories.categories.add(
        Category(slug="family-therapy", name="Family Therapy", keywords=("family",))
    )
    payload = make_place_payload("ChIJ-a-0001", "Eastside Family Psychologist", types=[])
    runner = ScanRunner(
        source=FakePlaceSource({THERAPIST: [[payload]]}),
        unit_of_work_factory=uow,
        normalizer=normalize,
        settings=ScanSettings(),
        taxonomy=TaxonomyConfig(),
        sleep=_Sleeps(),
    )

    report = runner.run(city_scopes(austin, ["therapist"]))

    links = uow.repositories.provider_categories.items  # type: ignore[attr-defined]
    scores = sorted(link.confidence for link in links)
    assert report.links == 2
    assert scores == [0.6, 0.9]


def test_neighborhood_scope_assigns_and_skips_full_neighborhoods(
    uow: FakeUnitOfWork, austin: City
) -> None:
    hoods = uow.repositories.neighborhoods.list_for_city(austin.id)
    scopes = neighborhood_scopes({austin.id: austin}, hoods, "mental health therapists")
    query = "mental health therapists in Hyde Park, Austin, TX"
    payload = make_place_payload(formattedAddress="4500 Duval St, Hyde Park, Austin, TX")
    source = FakePlaceSource({query: [[payload]]})
    runner = _runner(uow, source, skip_threshold=1)

    first = runner.run(scopes)
    second = runner.run(scopes)

    provider = uow.repositories.providers.list_all()[0]
    assert first.assigned == 1
    assert provider.neighborhood_id == hoods[0].id
    assert second.scopes_skipped == 1
    assert len(source.calls) == 1


def test_neighborhood_scopes_skip_unknown_cities(uow: FakeUnitOfWork, austin: City) -> None:
    hoods = uow.repositories.neighborhoods.list_for_city(austin.id)

    assert neighborhood_scopes({}, hoods, "therapist") == []


def test_run_loop_rescans_scopes_below_target(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [_payloads("a", 2)], COUNSELOR: [_payloads("b", 1)]})
    sleeps = _Sleeps()
    runner = _runner(uow, source, sleep=sleeps, page_delay=0.0, loop_interval=10.0)

    scopes = city_scopes(austin, ["therapist", "counselor"])

    report = runner.run_loop(scopes, target=2, max_cycles=2)

    assert report.cycles == 2
    assert 10.0 in sleeps.calls
    assert report.created == 3
    assert report.updated == 0


def test_run_loop_rescans_when_city_is_short(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [_payloads("a", 2)]})
    runner = _runner(uow, source, page_delay=0.0)

    report = runner.run_loop(city_scopes(austin, ["therapist"]), target=5, max_cycles=2)

    assert report.cycles == 2
    assert report.updated == 2
    assert [call[0] for call in source.calls] == [THERAPIST, THERAPIST]


def test_should_stop_ends_run_before_next_scope(uow: FakeUnitOfWork, austin: City) -> None:
    source = FakePlaceSource({THERAPIST: [_payloads("a", 1)], COUNSELOR: [_payloads("b", 1)]})
    stop = iter([False, True])
    runner = ScanRunner(
        source=source,
        unit_of_work_factory=uow,
        normalizer=normalize,
        settings=ScanSettings(),
        sleep=_Sleeps(),
        should_stop=lambda: next(stop, True),
    )

    report = runner.run(city_scopes(austin, ["therapist", "counselor"]))

    assert report.scopes_completed == 1
    assert [call[0] for call in source.calls] == [THERAPIST]
