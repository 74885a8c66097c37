"""Translate Places API payloads into normalized records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from logging import getLogger
from typing import Final, cast

from pydantic import ValidationError

from therapydir.domain.errors import MissingRequiredField, NormalizationError
from therapydir.domain.model import NormalizedRecord

from .schema import LegacyPlace, PlaceV1

log = getLogger(__name__)

SCHEMA_V1: Final[str] = "v1"
SCHEMA_LEGACY: Final[str] = "legacy"
SCHEMA_AUTO: Final[str] = "auto"
SCHEMA_VERSIONS: Final[frozenset[str]] = frozenset({SCHEMA_V1, SCHEMA_LEGACY, SCHEMA_AUTO})

_LEGACY_MARKERS: Final[frozenset[str]] = frozenset({"place_id", "geometry", "user_ratings_total"})


def detect_schema_version(payload: Mapping[str, object]) -> str:
    return SCHEMA_LEGACY if payload.keys() & _LEGACY_MARKERS else SCHEMA_V1


def _raw_json(payload: Mapping[str, object]) -> str:
    return json.dumps(payload, sort_keys=True, default=str, ensure_ascii=False)


def _require(value: str | None, field: str) -> str:
    if value is None:
        raise MissingRequiredField(field)
    return value


def _from_v1(payload: Mapping[str, object]) -> NormalizedRecord:
    place = PlaceV1.model_validate(payload)
    return NormalizedRecord(
        source_id=_require(place.id, "id"),
        name=_require(place.name, "displayName.text"),
        address=place.formatted_address,
        lat=place.location.latitude if place.location else None,
        lng=place.location.longitude if place.location else None,
        rating=place.rating,
        review_count=place.user_rating_count,
        website=place.website_uri,
        phone=place.national_phone_number,
        photo_ref=place.photo_ref,
        raw_json=_raw_json(payload),
    )


def _from_legacy(payload: Mapping[str, object]) -> NormalizedRecord:
    place = LegacyPlace.model_validate(payload)
    location = place.geometry.location if place.geometry else None
    return NormalizedRecord(
        source_id=_require(place.place_id, "place_id"),
        name=_require(place.name, "name"),
        address=place.formatted_address or place.vicinity,
        lat=location.lat if location else None,
        lng=location.lng if location else None,
        rating=place.rating,
        review_count=place.user_ratings_total,
        website=place.website,
        phone=place.formatted_phone_number or place.international_phone_number,
        photo_ref=place.photo_ref,
        raw_json=_raw_json(payload),
    )


def normalize(raw_payload: object, expected_schema_version: str = SCHEMA_V1) -> NormalizedRecord:
    """Map one raw place payload onto a ``NormalizedRecord``.

    Raises ``MissingRequiredField`` when the id or name is absent and
    ``NormalizationError`` for any other unusable payload.
    """

    if expected_schema_version not in SCHEMA_VERSIONS:
        raise NormalizationError(f"Unknown schema version: {expected_schema_version!r}")
    if not isinstance(raw_payload, Mapping):
        raise NormalizationError(f"Expected a mapping payload, got {type(raw_payload).__name__}")

    payload = cast(Mapping[str, object], raw_payload)
    version = expected_schema_version
    if version == SCHEMA_AUTO:
        version = detect_schema_version(payload)

    try:
        if version == SCHEMA_LEGACY:
            return _from_legacy(payload)
        return _from_v1(payload)
    except ValidationError as exc:
        log.debug("Payload failed %s validation: %s", version, exc)
        raise NormalizationError(
            f"Invalid {version} payload: {exc.error_count()} validation error(s)"
        ) from exc
