"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from therapydir.adapters.sqlalchemy.mappings import (
    category_table,
    city_table,
    neighborhood_table,
    provider_category_table,
    provider_table,
)
from therapydir.domain.model import (
    Category,
    City,
    Neighborhood,
    Provider,
    ProviderCategory,
)
from therapydir.domain.errors import StoreError
from therapydir.domain.ports.persistence import InsertResult, InsertStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session


class SqlAlchemyCityRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: City) -> None:
        self.session.add(entity)

    def get(self, city_id: UUID) -> City | None:
        return self.session.get(City, city_id)

    def get_by_slug(self, state: str, slug: str) -> City | None:
        stmt = (
            select(City)
            .where(city_table.c.state == state.strip().upper())
            .where(city_table.c.slug == slug)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[City]:
        stmt = select(City).order_by(city_table.c.state, city_table.c.slug)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyNeighborhoodRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Neighborhood) -> None:
        self.session.add(entity)

    def get(self, neighborhood_id: UUID) -> Neighborhood | None:
        return self.session.get(Neighborhood, neighborhood_id)

    def get_by_slug(self, city_id: UUID, slug: str) -> Neighborhood | None:
        stmt = (
            select(Neighborhood)
            .where(neighborhood_table.c.city_id == city_id)
            .where(neighborhood_table.c.slug == slug)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for_city(self, city_id: UUID) -> Sequence[Neighborhood]:
        stmt = (
            select(Neighborhood)
            .where(neighborhood_table.c.city_id == city_id)
            .order_by(neighborhood_table.c.name)
        )
        return self.session.execute(stmt).scalars().all()

    def list_all(self) -> Sequence[Neighborhood]:
        stmt = select(Neighborhood).order_by(
            neighborhood_table.c.city_id, neighborhood_table.c.slug
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyCategoryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Category) -> None:
        self.session.add(entity)

    def get_by_slug(self, slug: str) -> Category | None:
        stmt = select(Category).where(category_table.c.slug == slug)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[Category]:
        stmt = select(Category).order_by(category_table.c.slug)
        return self.session.execute(stmt).scalars().all()

    def list_for_city(self, city_id: UUID) -> Sequence[Category]:
        """Categories linked to at least one provider in the city."""

        linked = (
            select(provider_category_table.c.category_id)
            .join(provider_table, provider_table.c.id == provider_category_table.c.provider_id)
            .where(provider_table.c.city_id == city_id)
        )
        stmt = (
            select(Category)
            .where(category_table.c.id.in_(linked))
            .order_by(category_table.c.name)
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyProviderRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, provider_id: UUID) -> Provider | None:
        return self.session.get(Provider, provider_id)

    def get_by_source_id(self, source_id: str) -> Provider | None:
        stmt = select(Provider).where(provider_table.c.source_id == source_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_slug(self, slug: str) -> Provider | None:
        stmt = select(Provider).where(provider_table.c.slug == slug)
        return self.session.execute(stmt).scalar_one_or_none()

    def source_id_for_slug(self, slug: str) -> str | None:
        stmt = select(provider_table.c.source_id).where(provider_table.c.slug == slug)
        return self.session.execute(stmt).scalar_one_or_none()

    def try_insert(self, provider: Provider) -> InsertResult:
        """Insert inside a savepoint and classify unique violations by re-reading keys."""

        try:
            with self.session.begin_nested():
                self.session.add(provider)
                self.session.flush()
        except IntegrityError as exc:
            if self._exists(provider_table.c.source_id == provider.source_id):
                return InsertResult(InsertStatus.SOURCE_CONFLICT, error=exc)
            if self._exists(provider_table.c.slug == provider.slug):
                return InsertResult(InsertStatus.SLUG_CONFLICT, error=exc)
            return InsertResult(InsertStatus.FAILED, error=exc)
        except SQLAlchemyError as exc:
            return InsertResult(InsertStatus.FAILED, error=exc)
        return InsertResult(InsertStatus.INSERTED)

    def list_all(self) -> Sequence[Provider]:
        stmt = select(Provider).order_by(provider_table.c.slug)
        return self.session.execute(stmt).scalars().all()

    def list_for_city(self, city_id: UUID) -> Sequence[Provider]:
        stmt = (
            select(Provider)
            .where(provider_table.c.city_id == city_id)
            .order_by(provider_table.c.slug)
        )
        return self.session.execute(stmt).scalars().all()

    def top_by_city(self, city_id: UUID, *, limit: int | None = None) -> Sequence[Provider]:
        stmt = select(Provider).where(provider_table.c.city_id == city_id)
        return self._ranked(stmt, limit)

    def top_by_city_and_category(
        self, city_id: UUID, category_id: UUID, *, limit: int | None = None
    ) -> Sequence[Provider]:
        stmt = (
            select(Provider)
            .join(
                provider_category_table,
                provider_category_table.c.provider_id == provider_table.c.id,
            )
            .where(provider_table.c.city_id == city_id)
            .where(provider_category_table.c.category_id == category_id)
        )
        return self._ranked(stmt, limit)

    def top_by_city_and_neighborhood(
        self, city_id: UUID, neighborhood_id: UUID, *, limit: int | None = None
    ) -> Sequence[Provider]:
        stmt = (
            select(Provider)
            .where(provider_table.c.city_id == city_id)
            .where(provider_table.c.neighborhood_id == neighborhood_id)
        )
        return self._ranked(stmt, limit)

    def count_for_city(self, city_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(provider_table)
            .where(provider_table.c.city_id == city_id)
        )
        return int(self.session.execute(stmt).scalar_one())

    def count_for_neighborhood(self, neighborhood_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(provider_table)
            .where(provider_table.c.neighborhood_id == neighborhood_id)
        )
        return int(self.session.execute(stmt).scalar_one())

    def counts_by_city(self) -> dict[UUID, int]:
        stmt = select(provider_table.c.city_id, func.count()).group_by(provider_table.c.city_id)
        return {row[0]: int(row[1]) for row in self.session.execute(stmt).all()}

    def counts_by_neighborhood(self, city_id: UUID) -> dict[UUID, int]:
        stmt = (
            select(provider_table.c.neighborhood_id, func.count())
            .where(provider_table.c.city_id == city_id)
            .where(provider_table.c.neighborhood_id.is_not(None))
            .group_by(provider_table.c.neighborhood_id)
        )
        return {row[0]: int(row[1]) for row in self.session.execute(stmt).all()}

    def counts_by_category(self, city_id: UUID) -> dict[UUID, int]:
        stmt = (
            select(provider_category_table.c.category_id, func.count())
            .join(provider_table, provider_table.c.id == provider_category_table.c.provider_id)
            .where(provider_table.c.city_id == city_id)
            .group_by(provider_category_table.c.category_id)
        )
        return {row[0]: int(row[1]) for row in self.session.execute(stmt).all()}

    def _ranked(self, stmt: Select[tuple[Provider]], limit: int | None) -> Sequence[Provider]:
        ordered = stmt.order_by(
            provider_table.c.rating.is_(None),
            provider_table.c.rating.desc(),
            provider_table.c.review_count.desc(),
            provider_table.c.slug,
        )
        if limit is not None:
            ordered = ordered.limit(limit)
        return self.session.execute(ordered).scalars().all()

    def _exists(self, clause: ColumnElement[bool]) -> bool:
        stmt = select(provider_table.c.id).where(clause).limit(1)
        return self.session.execute(stmt).first() is not None


class SqlAlchemyProviderCategoryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ProviderCategory) -> None:
        self.session.add(entity)

    def get(self, provider_id: UUID, category_id: UUID) -> ProviderCategory | None:
        return self.session.get(ProviderCategory, (provider_id, category_id))

    def upsert(
        self, provider_id: UUID, category_id: UUID, confidence: float
    ) -> ProviderCategory:
        """Insert the link in a savepoint; a pair stored concurrently is rescored instead."""

        existing = self.get(provider_id, category_id)
        if existing is not None:
            existing.rescore(confidence)
            return existing

        link = ProviderCategory(
            provider_id=provider_id, category_id=category_id, confidence=confidence
        )
        try:
            with self.session.begin_nested():
                self.session.add(link)
                self.session.flush()
        except IntegrityError as exc:
            stored = self.session.get(
                ProviderCategory, (provider_id, category_id), populate_existing=True
            )
            if stored is None:
                raise StoreError(f"Could not link provider {provider_id}: {exc.orig}") from exc
            stored.rescore(confidence)
            return stored
        return link

    def list_for_provider(self, provider_id: UUID) -> Sequence[ProviderCategory]:
        stmt = (
            select(ProviderCategory)
            .where(provider_category_table.c.provider_id == provider_id)
            .order_by(provider_category_table.c.confidence.desc())
        )
        return self.session.execute(stmt).scalars().all()

    def count(self) -> int:
        stmt = select(func.count()).select_from(provider_category_table)
        return int(self.session.execute(stmt).scalar_one())


if TYPE_CHECKING:
    from therapydir.domain.ports.persistence import (
        CategoryRepository,
        CityRepository,
        NeighborhoodRepository,
        ProviderCategoryRepository,
        ProviderRepository,
    )

    _session_stub = cast("Session", object())
    _city_repo: CityRepository = SqlAlchemyCityRepository(_session_stub)
    _hood_repo: NeighborhoodRepository = SqlAlchemyNeighborhoodRepository(_session_stub)
    _category_repo: CategoryRepository = SqlAlchemyCategoryRepository(_session_stub)
    _provider_repo: ProviderRepository = SqlAlchemyProviderRepository(_session_stub)
    _link_repo: ProviderCategoryRepository = SqlAlchemyProviderCategoryRepository(_session_stub)
