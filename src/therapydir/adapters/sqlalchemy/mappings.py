"""SQLAlchemy mapping metadata for the directory domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from therapydir.domain.model import (
    Category,
    City,
    Neighborhood,
    Provider,
    ProviderCategory,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class StringTupleType(TypeDecorator[tuple[str, ...]]):
    """Ordered string tuple stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(list(value or ()))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if not value:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(item for item in items if isinstance(item, str))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Reference tables --------------------------------------------------------------

city_table = Table(
    "city",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("state", String(2), nullable=False),
    Column("slug", String, nullable=False),
    Column("name", String, nullable=False),
    UniqueConstraint("state", "slug"),
)

neighborhood_table = Table(
    "neighborhood",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "city_id", UUIDColumnType, ForeignKey("city.id", ondelete="CASCADE"), nullable=False
    ),
    Column("slug", String, nullable=False),
    Column("name", String, nullable=False),
    UniqueConstraint("city_id", "slug"),
)

category_table = Table(
    "category",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("slug", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("synonyms", StringTupleType, nullable=False, default=()),
    Column("keywords", StringTupleType, nullable=False, default=()),
)

# Providers ---------------------------------------------------------------------

provider_table = Table(
    "provider",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_id", String, nullable=False, unique=True),
    Column("slug", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("city_id", UUIDColumnType, ForeignKey("city.id"), nullable=False),
    Column(
        "neighborhood_id",
        UUIDColumnType,
        ForeignKey("neighborhood.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("address", String, nullable=True),
    Column("lat", Float, nullable=True),
    Column("lng", Float, nullable=True),
    Column("rating", Float, nullable=True),
    Column("review_count", Integer, nullable=True),
    Column("website", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("photo_ref", String, nullable=True),
    Column("raw_payload", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_provider_city_rating", "city_id", "rating"),
    Index("ix_provider_neighborhood_id", "neighborhood_id"),
)

provider_category_table = Table(
    "provider_category",
    mapper_registry.metadata,
    Column(
        "provider_id",
        UUIDColumnType,
        ForeignKey("provider.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        UUIDColumnType,
        ForeignKey("category.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("confidence", Float, nullable=False),
    Index("ix_provider_category_category_id", "category_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(City, city_table)
    mapper_registry.map_imperatively(Neighborhood, neighborhood_table)
    mapper_registry.map_imperatively(Category, category_table)
    mapper_registry.map_imperatively(Provider, provider_table)
    mapper_registry.map_imperatively(ProviderCategory, provider_category_table)
    orm.configure_mappers()
    return mapper_registry
