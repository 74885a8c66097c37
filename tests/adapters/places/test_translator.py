from __future__ import annotations

import json

import pytest

from tests.helpers.directory import make_place_payload
from therapydir.adapters.places import (
    SCHEMA_AUTO,
    SCHEMA_LEGACY,
    SCHEMA_V1,
    detect_schema_version,
    normalize,
)
from therapydir.domain.errors import MissingRequiredField, NormalizationError


@pytest.fixture
def legacy_payload() -> dict[str, object]:
    return {
        "place_id": "ChIJlegacy0001",
        "name": "Hill Country Counseling",
        "vicinity": "1200 S Lamar Blvd, Austin",
        "geometry": {"location": {"lat": 30.25, "lng": -97.76}},
        "rating": 4.2,
        "user_ratings_total": 9,
        "photos": [{"photo_reference": "legacy-photo"}],
    }


def test_normalize_v1_payload() -> None:
    payload = make_place_payload(
        websiteUri="https://mindfulpath.example",
        nationalPhoneNumber="(512) 555-0100",
        photos=[{"name": "places/ChIJ-test-0001/photos/abc", "widthPx": 800}],
    )

    record = normalize(payload)

    assert record.source_id == "ChIJ-test-0001"
    assert record.name == "Mindful Path Counseling"
    assert record.address == "100 Congress Ave, Austin, TX 78701"
    assert record.lat == pytest.approx(30.2672)
    assert record.lng == pytest.approx(-97.7431)
    assert record.rating == 4.8
    assert record.review_count == 12
    assert record.website == "https://mindfulpath.example"
    assert record.phone == "(512) 555-0100"
    assert record.photo_ref == "places/ChIJ-test-0001/photos/abc"
    assert record.raw_json is not None
    assert json.loads(record.raw_json) == payload


def test_absent_optionals_are_none_not_zero() -> None:
    payload = {"id": "ChIJ-bare", "displayName": {"text": "Bare Practice"}}

    record = normalize(payload)

    assert record.rating is None
    assert record.review_count is None
    assert record.lat is None
    assert record.lng is None
    assert record.address is None
    assert record.photo_ref is None


def test_blank_strings_count_as_missing() -> None:
    payload = make_place_payload(formattedAddress="   ", websiteUri="")

    record = normalize(payload)

    assert record.address is None
    assert record.website is None


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"displayName": {"text": "No Id"}}, "id"),
        ({"id": "ChIJ-no-name"}, "displayName.text"),
        ({"id": "ChIJ-blank-name", "displayName": {"text": "  "}}, "displayName.text"),
    ],
)
def test_missing_required_fields(payload: dict[str, object], field: str) -> None:
    with pytest.raises(MissingRequiredField) as excinfo:
        normalize(payload)

    assert excinfo.value.field == field


def test_invalid_field_types_raise_normalization_error() -> None:
    payload = make_place_payload(rating="excellent")

    with pytest.raises(NormalizationError):
        normalize(payload)


def test_non_mapping_payload_is_rejected() -> None:
    with pytest.raises(NormalizationError):
        normalize(["not", "a", "mapping"])


def test_unknown_schema_version_is_rejected() -> None:
    with pytest.raises(NormalizationError, match="schema version"):
        normalize(make_place_payload(), "v0")


def test_normalize_legacy_payload(legacy_payload: dict[str, object]) -> None:
    record = normalize(legacy_payload, SCHEMA_LEGACY)

    assert record.source_id == "ChIJlegacy0001"
    assert record.name == "Hill Country Counseling"
    assert record.address == "1200 S Lamar Blvd, Austin"
    assert record.lat == 30.25
    assert record.review_count == 9
    assert record.photo_ref == "legacy-photo"


def test_legacy_payload_requires_place_id(legacy_payload: dict[str, object]) -> None:
    del legacy_payload["place_id"]

    with pytest.raises(MissingRequiredField) as excinfo:
        normalize(legacy_payload, SCHEMA_LEGACY)

    assert excinfo.value.field == "place_id"


def test_auto_detects_schema(legacy_payload: dict[str, object]) -> None:
    assert detect_schema_version(legacy_payload) == SCHEMA_LEGACY
    assert detect_schema_version(make_place_payload()) == SCHEMA_V1
    assert normalize(legacy_payload, SCHEMA_AUTO).source_id == "ChIJlegacy0001"
    assert normalize(make_place_payload(), SCHEMA_AUTO).source_id == "ChIJ-test-0001"
