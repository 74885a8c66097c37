"""Domain ports implemented by adapters."""

from __future__ import annotations

from .fetching import PlacePage, PlaceSource
from .persistence import (
    CategoryRepository,
    CityRepository,
    InsertResult,
    InsertStatus,
    NeighborhoodRepository,
    ProviderCategoryRepository,
    ProviderRepository,
    Repository,
    SlugIndex,
)
from .unit_of_work import DirectoryRepositories, DirectoryUnitOfWork, UnitOfWork

__all__ = [
    "CategoryRepository",
    "CityRepository",
    "DirectoryRepositories",
    "DirectoryUnitOfWork",
    "InsertResult",
    "InsertStatus",
    "NeighborhoodRepository",
    "PlacePage",
    "PlaceSource",
    "ProviderCategoryRepository",
    "ProviderRepository",
    "Repository",
    "SlugIndex",
    "UnitOfWork",
]
