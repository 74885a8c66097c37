from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import pytest

from tests.helpers.directory import FakePlaceSource, make_place_payload
from therapydir import app
from therapydir.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork  # noqa: TC001

UowFactory = Callable[[], SqlAlchemyUnitOfWork]


def _no_sleep(_seconds: float) -> None:
    return None


def test_seed_directory_reports_created_rows(sqlite_unit_of_work: UowFactory) -> None:
    report = app.seed_directory(unit_of_work_factory=sqlite_unit_of_work)

    assert report.cities > 0
    assert report.categories_created > 0
    assert app.seed_directory(unit_of_work_factory=sqlite_unit_of_work).cities == 0


def test_scan_city_uses_given_queries(seeded_unit_of_work: UowFactory) -> None:
    source = FakePlaceSource(
        {"psychologist in Austin, TX": [[make_place_payload("ChIJ-a-0001", "Clear Mind")]]}
    )

    report = app.scan_city(
        "Austin",
        "tx",
        queries=["psychologist"],
        source=source,
        unit_of_work_factory=seeded_unit_of_work,
        sleep=_no_sleep,
    )

    assert report.created == 1
    assert source.calls == [("psychologist in Austin, TX", None)]


def test_scan_city_rejects_unknown_city(seeded_unit_of_work: UowFactory) -> None:
    with pytest.raises(ValueError, match="Unknown city"):
        app.scan_city(
            "Atlantis",
            "ZZ",
            source=FakePlaceSource(),
            unit_of_work_factory=seeded_unit_of_work,
            sleep=_no_sleep,
        )


def test_scan_neighborhoods_limits_to_one_city(seeded_unit_of_work: UowFactory) -> None:
    source = FakePlaceSource()

    report = app.scan_neighborhoods(
        city_name="Austin",
        state="TX",
        source=source,
        unit_of_work_factory=seeded_unit_of_work,
        sleep=_no_sleep,
    )

    queried = {query for query, _ in source.calls}
    assert report.scopes_completed == len(queried)
    assert queried
    assert all(query.endswith(", Austin, TX") for query in queried)


def test_scan_neighborhoods_requires_state_with_city(seeded_unit_of_work: UowFactory) -> None:
    with pytest.raises(ValueError, match="state"):
        app.scan_neighborhoods(
            city_name="Austin", source=FakePlaceSource(), unit_of_work_factory=seeded_unit_of_work
        )


def test_passes_and_stats(seeded_unit_of_work: UowFactory) -> None:
    source = FakePlaceSource(
        {
            "therapist in Austin, TX": [
                [make_place_payload(formattedAddress="Zilker Park Rd, Zilker, Austin, TX")]
            ]
        }
    )
    app.scan_city(
        "Austin",
        "TX",
        queries=["therapist"],
        source=source,
        unit_of_work_factory=seeded_unit_of_work,
        sleep=_no_sleep,
    )

    classified = app.classify_all(unit_of_work_factory=seeded_unit_of_work)
    assigned = app.assign_all(unit_of_work_factory=seeded_unit_of_work)
    repaired = app.repair_all_slugs(unit_of_work_factory=seeded_unit_of_work)
    summaries = app.city_stats(
        city_name="Austin", state="TX", unit_of_work_factory=seeded_unit_of_work
    )

    assert classified.providers == 1
    assert assigned.assigned == 1
    assert repaired == 0
    assert [summary.city.name for summary in summaries] == ["Austin"]
    assert summaries[0].by_neighborhood == {"Zilker": 1}
    everything = app.city_stats(unit_of_work_factory=seeded_unit_of_work)
    assert len(everything) > 1
