"""Directory listings and their category links."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import Entity, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class NormalizedRecord:
    """Vendor-neutral view of one place payload.

    Optional values are ``None`` when the source omitted them, never zero or empty.
    """

    source_id: str
    name: str
    address: str | None = None
    lat: float | None = None
    lng: float | None = None
    rating: float | None = None
    review_count: int | None = None
    website: str | None = None
    phone: str | None = None
    photo_ref: str | None = None
    raw_json: str | None = None


@dataclass(eq=False, kw_only=True)
class Provider(Entity):
    source_id: str
    slug: str
    name: str
    city_id: UUID
    neighborhood_id: UUID | None = None
    address: str | None = None
    lat: float | None = None
    lng: float | None = None
    rating: float | None = None
    review_count: int | None = None
    website: str | None = None
    phone: str | None = None
    photo_ref: str | None = None
    raw_payload: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_record(cls, record: NormalizedRecord, *, slug: str, city_id: UUID) -> Provider:
        provider = cls(source_id=record.source_id, slug=slug, name=record.name, city_id=city_id)
        provider.refresh(record)
        return provider

    def refresh(self, record: NormalizedRecord) -> None:
        """Copy the mutable fields of ``record``; identity fields stay untouched."""

        if record.source_id != self.source_id:
            raise ValueError(
                f"Record {record.source_id!r} cannot refresh provider {self.source_id!r}"
            )
        self.name = record.name
        self.address = record.address
        self.lat = record.lat
        self.lng = record.lng
        self.rating = record.rating
        self.review_count = record.review_count
        self.website = record.website
        self.phone = record.phone
        self.photo_ref = record.photo_ref
        self.raw_payload = record.raw_json
        self.updated_at = utcnow()


@dataclass(eq=False, kw_only=True)
class ProviderCategory:
    """Weighted link between a provider and a category, one per pair."""

    provider_id: UUID
    category_id: UUID
    confidence: float

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    def rescore(self, confidence: float) -> None:
        _check_confidence(confidence)
        self.confidence = confidence


def _check_confidence(value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Confidence score must be within [0, 1], got {value}")
