"""Pydantic models describing Places API payloads.

Two generations of the API are understood: the current ``places:searchText``
shape and the legacy Place Search shape still found in older exports.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class PlacesBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LocalizedText(PlacesBaseModel):
    text: str | None = None
    language_code: str | None = Field(default=None, alias="languageCode")

    _normalize_text = field_validator("text", mode="before")(_blank_to_none)


class LatLng(PlacesBaseModel):
    latitude: float
    longitude: float


class PhotoV1(PlacesBaseModel):
    name: str | None = None
    width_px: int | None = Field(default=None, alias="widthPx")
    height_px: int | None = Field(default=None, alias="heightPx")

    _normalize_name = field_validator("name", mode="before")(_blank_to_none)


class PlaceV1(PlacesBaseModel):
    id: str | None = None
    display_name: LocalizedText | None = Field(default=None, alias="displayName")
    formatted_address: str | None = Field(default=None, alias="formattedAddress")
    location: LatLng | None = None
    rating: float | None = None
    user_rating_count: int | None = Field(default=None, alias="userRatingCount")
    website_uri: str | None = Field(default=None, alias="websiteUri")
    national_phone_number: str | None = Field(default=None, alias="nationalPhoneNumber")
    types: list[str] = Field(default_factory=list)
    primary_type: str | None = Field(default=None, alias="primaryType")
    photos: list[PhotoV1] = Field(default_factory=list)

    _normalize_text = field_validator(
        "id",
        "formatted_address",
        "website_uri",
        "national_phone_number",
        "primary_type",
        mode="before",
    )(_blank_to_none)

    @property
    def name(self) -> str | None:
        return self.display_name.text if self.display_name else None

    @property
    def photo_ref(self) -> str | None:
        return next((photo.name for photo in self.photos if photo.name), None)


class LegacyLatLng(PlacesBaseModel):
    lat: float
    lng: float


class LegacyGeometry(PlacesBaseModel):
    location: LegacyLatLng | None = None


class LegacyPhoto(PlacesBaseModel):
    photo_reference: str | None = None

    _normalize_reference = field_validator("photo_reference", mode="before")(_blank_to_none)


class LegacyPlace(PlacesBaseModel):
    place_id: str | None = None
    name: str | None = None
    formatted_address: str | None = None
    vicinity: str | None = None
    geometry: LegacyGeometry | None = None
    rating: float | None = None
    user_ratings_total: int | None = None
    website: str | None = None
    formatted_phone_number: str | None = None
    international_phone_number: str | None = None
    types: list[str] = Field(default_factory=list)
    photos: list[LegacyPhoto] = Field(default_factory=list)

    _normalize_text = field_validator(
        "place_id",
        "name",
        "formatted_address",
        "vicinity",
        "website",
        "formatted_phone_number",
        "international_phone_number",
        mode="before",
    )(_blank_to_none)

    @property
    def photo_ref(self) -> str | None:
        return next((photo.photo_reference for photo in self.photos if photo.photo_reference), None)


class SearchTextResponse(PlacesBaseModel):
    places: list[dict[str, object]] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")

    _normalize_token = field_validator("next_page_token", mode="before")(_blank_to_none)


class ErrorBody(PlacesBaseModel):
    code: int | None = None
    message: str = ""
    status: str | None = None


class ErrorResponse(PlacesBaseModel):
    error: ErrorBody
