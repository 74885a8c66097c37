"""Google Places API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

PLACES_BASE_URL = "https://places.googleapis.com/v1/"
PLACES_TIMEOUT_SECONDS = 15.0
PLACES_PAGE_SIZE = 20
PLACES_PHOTO_MAX_PX = 800

# 429 is a quota signal for this API; surface it instead of retrying
PLACES_RETRY_STATUSES = frozenset({500, 502, 503, 504})

SEARCH_FIELD_MASK = ",".join(
    f"places.{name}"
    for name in (
        "id",
        "displayName",
        "formattedAddress",
        "location",
        "rating",
        "userRatingCount",
        "websiteUri",
        "nationalPhoneNumber",
        "types",
        "primaryType",
        "primaryTypeDisplayName",
        "photos",
    )
) + ",nextPageToken"


@dataclass(frozen=True)
class PlacesConfig:
    """Holds Places API configuration values."""

    api_key: str
    resilience: ResilienceConfig
    page_size: int = PLACES_PAGE_SIZE
    field_mask: str = SEARCH_FIELD_MASK


def default_places_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="places",
        base_url=PLACES_BASE_URL,
        timeout_seconds=PLACES_TIMEOUT_SECONDS,
        retry=RetryPolicy(status_forcelist=PLACES_RETRY_STATUSES),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=CacheConfig(),
    )


def get_places_config(*, resilience: ResilienceConfig | None = None) -> PlacesConfig:
    values = require_env_vars(("GOOGLE_MAPS_API_KEY",))
    return PlacesConfig(
        api_key=values["GOOGLE_MAPS_API_KEY"],
        resilience=resilience or default_places_resilience(),
    )
