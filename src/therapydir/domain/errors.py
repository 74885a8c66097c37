"""Pipeline error taxonomy.

Per-record errors (normalization, resolution, store) skip the record; ``SourceApiError``
aborts the current scope; ``QuotaExceeded`` aborts the whole run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from therapydir.domain.scan import ScanReport


class PipelineError(RuntimeError):
    """Base class for ingest pipeline failures."""


class NormalizationError(PipelineError):
    """Raised when a raw payload cannot be mapped to a normalized record."""


class MissingRequiredField(NormalizationError):  # noqa: N818
    """Raised when a payload lacks a field every record must carry."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}")
        self.field = field


class EntityResolutionError(PipelineError):
    """Raised when a normalized record cannot be written to the store."""


class SlugCollision(EntityResolutionError):  # noqa: N818
    """Raised when a slug stays taken after the disambiguation retry."""

    def __init__(self, slug: str, *, source_id: str) -> None:
        super().__init__(f"Slug {slug!r} for source {source_id!r} collides with another provider")
        self.slug = slug
        self.source_id = source_id


class StoreError(PipelineError):
    """Raised when the store rejects a write, e.g. a unique key taken by a concurrent writer."""


class SourceError(PipelineError):
    """Base class for failures reported by the external place source."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SourceApiError(SourceError):
    """Transient or unexpected source failure; aborts the current scope only."""


class QuotaExceeded(SourceError):  # noqa: N818
    """The source refused further calls; the whole run must stop."""

    report: ScanReport | None = None
