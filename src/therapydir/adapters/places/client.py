"""HTTP client for the Google Places API (v1)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from therapydir.adapters.http_resilience import ResilientClient
from therapydir.config.places import (
    PLACES_BASE_URL,
    PLACES_PHOTO_MAX_PX,
    PlacesConfig,
    get_places_config,
)
from therapydir.domain.errors import QuotaExceeded, SourceApiError
from therapydir.domain.ports.fetching import PlacePage, PlaceSource

from .schema import ErrorResponse, SearchTextResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from types import TracebackType

    from therapydir.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

QUOTA_HTTP_STATUSES: Final[frozenset[int]] = frozenset({403, 429})
QUOTA_ERROR_STATUSES: Final[frozenset[str]] = frozenset({"RESOURCE_EXHAUSTED", "PERMISSION_DENIED"})


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_status(response: httpx.Response) -> str | None:
    try:
        return ErrorResponse.model_validate(response.json()).error.status
    except (ValueError, ValidationError):
        return None


def raise_for_places_error(response: httpx.Response) -> None:
    """Map an unsuccessful response onto the pipeline's source errors.

    Quota and permission refusals are recognised by HTTP status or by the error
    status code in the body, never by message text.
    """

    if response.is_success:
        return
    status = _error_status(response)
    message = f"Places API returned HTTP {response.status_code}"
    if status:
        message = f"{message} ({status})"
    if response.status_code in QUOTA_HTTP_STATUSES or status in QUOTA_ERROR_STATUSES:
        raise QuotaExceeded(message, status_code=response.status_code)
    raise SourceApiError(message, status_code=response.status_code)


@dataclass(slots=True)
class PlacesClient:
    """Synchronous Places facade.

    One event loop and one ``ResilientClient`` live as long as the facade, so the
    rate limiter, the connection pool and the response cache span every call.
    Call ``close`` (or use it as a context manager) when done.
    """

    config: PlacesConfig = field(default_factory=get_places_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _runner: asyncio.Runner | None = field(default=None, init=False, repr=False)
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    def __enter__(self) -> PlacesClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._runner is None:
            return
        try:
            if self._client is not None:
                self._runner.run(self._client.aclose())
        finally:
            self._client = None
            self._runner.close()
            self._runner = None

    @property
    def base_url(self) -> str:
        return (self.config.resilience.base_url or PLACES_BASE_URL).rstrip("/")

    def search(self, text_query: str, *, page_token: str | None = None) -> PlacePage:
        return self._run(self._search_async(text_query, page_token=page_token))

    def fetch_photo(self, photo_ref: str, *, max_px: int = PLACES_PHOTO_MAX_PX) -> bytes:
        return self._run(self._fetch_photo_async(photo_ref, max_px=max_px))

    def _run[T](self, call: Coroutine[object, object, T]) -> T:
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(call)

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    async def _search_async(self, text_query: str, *, page_token: str | None) -> PlacePage:
        body: dict[str, object] = {"textQuery": text_query, "pageSize": self.config.page_size}
        if page_token:
            body["pageToken"] = page_token
        headers = {
            "X-Goog-Api-Key": self.config.api_key,
            "X-Goog-FieldMask": self.config.field_mask,
        }

        try:
            response = await self._http().post(
                f"{self.base_url}/places:searchText", json=body, headers=headers
            )
        except httpx.HTTPError as exc:
            raise SourceApiError(f"Places search failed: {exc}") from exc

        raise_for_places_error(response)
        try:
            parsed = SearchTextResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise SourceApiError(
                "Unexpected Places search payload", status_code=response.status_code
            ) from exc

        log.debug(
            "Places search %r returned %s places (next page: %s)",
            text_query,
            len(parsed.places),
            bool(parsed.next_page_token),
        )
        return PlacePage(records=tuple(parsed.places), next_page_token=parsed.next_page_token)

    async def _fetch_photo_async(self, photo_ref: str, *, max_px: int) -> bytes:
        params = {
            "key": self.config.api_key,
            "maxWidthPx": max_px,
            "maxHeightPx": max_px,
        }
        try:
            response = await self._http().get(
                f"{self.base_url}/{photo_ref.strip('/')}/media", params=params
            )
        except httpx.HTTPError as exc:
            raise SourceApiError(f"Photo download failed: {exc}") from exc

        raise_for_places_error(response)
        return response.content


if TYPE_CHECKING:
    _source_check: PlaceSource = PlacesClient()
