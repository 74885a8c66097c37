"""SQLAlchemy adapter package for therapydir."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCategoryRepository,
    SqlAlchemyCityRepository,
    SqlAlchemyNeighborhoodRepository,
    SqlAlchemyProviderCategoryRepository,
    SqlAlchemyProviderRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCategoryRepository",
    "SqlAlchemyCityRepository",
    "SqlAlchemyNeighborhoodRepository",
    "SqlAlchemyProviderCategoryRepository",
    "SqlAlchemyProviderRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_engine",
    "configured_engine",
    "is_started",
    "mapper_registry",
    "start_mappers",
    "shutdown",
    "startup",
]
