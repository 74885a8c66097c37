"""Batch scan defaults."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PAGE_DELAY_SECONDS = 2.0
DEFAULT_SCOPE_DELAY_SECONDS = 1.0
DEFAULT_MAX_RESULTS_PER_SCOPE = 60
DEFAULT_LOOP_INTERVAL_SECONDS = 10.0
DEFAULT_LOOP_TARGET = 50
DEFAULT_SKIP_THRESHOLD = 50

DEFAULT_SEARCH_QUERIES: tuple[str, ...] = (
    "therapist",
    "psychologist",
    "counselor",
    "psychotherapy",
    "mental health clinic",
    "family therapist",
)
DEFAULT_NEIGHBORHOOD_QUERY = "mental health therapists"


@dataclass(frozen=True, slots=True)
class ScanSettings:
    page_delay: float = DEFAULT_PAGE_DELAY_SECONDS
    scope_delay: float = DEFAULT_SCOPE_DELAY_SECONDS
    max_results: int | None = DEFAULT_MAX_RESULTS_PER_SCOPE
    loop_interval: float = DEFAULT_LOOP_INTERVAL_SECONDS
    loop_target: int = DEFAULT_LOOP_TARGET
    skip_threshold: int | None = DEFAULT_SKIP_THRESHOLD
    classify: bool = True
    schema_version: str = "v1"

    def __post_init__(self) -> None:
        if self.page_delay < 0 or self.scope_delay < 0 or self.loop_interval < 0:
            raise ValueError("Scan delays must be non-negative")
        if self.max_results is not None and self.max_results <= 0:
            raise ValueError("max_results must be positive")


def get_scan_settings(**overrides: object) -> ScanSettings:
    """Return scan settings with ``None`` overrides ignored."""

    values = {key: value for key, value in overrides.items() if value is not None}
    return ScanSettings(**values)  # type: ignore[arg-type]
