from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect

from tests.helpers.directory import make_record
from therapydir.adapters.sqlalchemy import mapper_registry
from therapydir.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from therapydir.domain.errors import StoreError
from therapydir.domain.model import City, Provider

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_migrates_schema(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"city", "neighborhood", "category", "provider", "provider_category"} <= tables
    assert set(mapper_registry.metadata.tables) <= tables


def test_unit_of_work_commits_and_rolls_back(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        city = City(state="TX", slug="austin", name="Austin")
        uow.repositories.cities.add(city)
        provider = Provider.from_record(make_record(), slug="kept", city_id=city.id)
        assert uow.repositories.providers.try_insert(provider).ok
        uow.commit()

    with pytest.raises(RuntimeError), SqlAlchemyUnitOfWork() as uow:
        dropped = Provider.from_record(make_record("ChIJ-dropped"), slug="dropped", city_id=city.id)
        uow.repositories.providers.try_insert(dropped)
        raise RuntimeError("abort")

    with SqlAlchemyUnitOfWork() as uow:
        providers = uow.repositories.providers
        assert providers.get_by_slug("kept") is not None
        assert providers.get_by_slug("dropped") is None


def test_rejected_commit_raises_store_error_and_keeps_unit_usable(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        city = City(state="TX", slug="austin", name="Austin")
        uow.repositories.cities.add(city)
        uow.commit()

        first = Provider.from_record(make_record("ChIJ-same"), slug="first", city_id=city.id)
        second = Provider.from_record(make_record("ChIJ-same"), slug="second", city_id=city.id)
        uow.session.add_all([first, second])
        with pytest.raises(StoreError):
            uow.commit()

        kept = Provider.from_record(make_record("ChIJ-kept"), slug="kept", city_id=city.id)
        assert uow.repositories.providers.try_insert(kept).ok
        uow.commit()

    with SqlAlchemyUnitOfWork() as uow:
        providers = uow.repositories.providers
        assert [provider.slug for provider in providers.list_all()] == ["kept"]
