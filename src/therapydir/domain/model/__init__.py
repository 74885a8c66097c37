"""Domain model for the therapist directory."""

from __future__ import annotations

from .base import Entity, new_id, utcnow
from .categories import Category
from .geography import City, Neighborhood
from .provider import NormalizedRecord, Provider, ProviderCategory

__all__ = [
    "Category",
    "City",
    "Entity",
    "Neighborhood",
    "NormalizedRecord",
    "Provider",
    "ProviderCategory",
    "new_id",
    "utcnow",
]
