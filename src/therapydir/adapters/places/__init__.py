"""Public interface for the Google Places adapter."""

from __future__ import annotations

from .client import PlacesClient, raise_for_places_error
from .schema import LegacyPlace, PlaceV1, SearchTextResponse
from .translator import (
    SCHEMA_AUTO,
    SCHEMA_LEGACY,
    SCHEMA_V1,
    detect_schema_version,
    normalize,
)

__all__ = [
    "SCHEMA_AUTO",
    "SCHEMA_LEGACY",
    "SCHEMA_V1",
    "LegacyPlace",
    "PlaceV1",
    "PlacesClient",
    "SearchTextResponse",
    "detect_schema_version",
    "normalize",
    "raise_for_places_error",
]
