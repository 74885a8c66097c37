"""Batch orchestration of place scans.

A run walks its scopes one after another: page through the source, normalize and
resolve each record, commit it, and pause between calls. Record-level failures are
skipped, a failing scope is abandoned, and a quota refusal ends the run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from therapydir.domain.errors import (
    EntityResolutionError,
    NormalizationError,
    QuotaExceeded,
    SourceApiError,
    StoreError,
)
from therapydir.domain.resolution import ProviderResolver
from therapydir.domain.taxonomy import CategoryTable, Matcher, SubstringMatcher, entity_text

if TYPE_CHECKING:
    from uuid import UUID

    from therapydir.config.scan import ScanSettings
    from therapydir.config.taxonomy import TaxonomyConfig
    from therapydir.domain.model import City, Neighborhood, NormalizedRecord
    from therapydir.domain.ports.fetching import PlaceSource
    from therapydir.domain.ports.unit_of_work import DirectoryUnitOfWork

log = logging.getLogger(__name__)

Normalizer = Callable[[Mapping[str, object], str], "NormalizedRecord"]
UnitOfWorkFactory = Callable[[], "DirectoryUnitOfWork"]


@dataclass(frozen=True, slots=True)
class ScanScope:
    """A geographic area plus search term driving one pagination sequence."""

    city: City
    query: str
    neighborhood: Neighborhood | None = None

    @property
    def text_query(self) -> str:
        if self.neighborhood is not None:
            return f"{self.query} in {self.neighborhood.name}, {self.city.name}, {self.city.state}"
        return f"{self.query} in {self.city.name}, {self.city.state}"

    @property
    def label(self) -> str:
        area = self.city.slug
        if self.neighborhood is not None:
            area = f"{area}/{self.neighborhood.slug}"
        return f"{area}:{self.query}"


def city_scopes(city: City, queries: Iterable[str]) -> list[ScanScope]:
    return [ScanScope(city=city, query=query) for query in queries]


def neighborhood_scopes(
    cities: Mapping[UUID, City],
    neighborhoods: Iterable[Neighborhood],
    query: str,
) -> list[ScanScope]:
    """One scope per neighborhood whose city is known."""

    scopes: list[ScanScope] = []
    for neighborhood in neighborhoods:
        city = cities.get(neighborhood.city_id)
        if city is None:
            log.warning("Neighborhood %s has no known city; skipping", neighborhood.slug)
            continue
        scopes.append(ScanScope(city=city, query=query, neighborhood=neighborhood))
    return scopes


@dataclass(slots=True)
class ScanReport:
    """Counters for one run (or one continuous loop)."""

    scopes_completed: int = 0
    scopes_failed: int = 0
    scopes_skipped: int = 0
    pages: int = 0
    fetched: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    links: int = 0
    assigned: int = 0
    cycles: int = 0
    quota_exceeded: bool = False

    @property
    def stored(self) -> int:
        return self.created + self.updated


def _never() -> bool:
    return False


class ScanRunner:
    def __init__(
        self,
        *,
        source: PlaceSource,
        unit_of_work_factory: UnitOfWorkFactory,
        normalizer: Normalizer,
        settings: ScanSettings,
        taxonomy: TaxonomyConfig | None = None,
        matcher: Matcher | None = None,
        sleep: Callable[[float], None] = time.sleep,
        should_stop: Callable[[], bool] = _never,
    ) -> None:
        self.source = source
        self.unit_of_work_factory = unit_of_work_factory
        self.normalizer = normalizer
        self.settings = settings
        self.taxonomy = taxonomy
        self.matcher = matcher or SubstringMatcher()
        self._sleep = sleep
        self._should_stop = should_stop

    def run(self, scopes: Sequence[ScanScope]) -> ScanReport:
        """Scan every scope once.

        Raises ``QuotaExceeded`` (with ``report`` attached) when the source refuses
        further calls; everything committed before that stays.
        """

        report = ScanReport(cycles=1)
        self._run_scopes(scopes, report)
        self._log_summary(report)
        return report

    def run_loop(
        self,
        scopes: Sequence[ScanScope],
        *,
        target: int | None = None,
        max_cycles: int | None = None,
    ) -> ScanReport:
        """Scan, sleep, then rescan scopes still below ``target`` until stopped."""

        threshold = self.settings.loop_target if target is None else target
        report = ScanReport()
        pending: Sequence[ScanScope] = scopes
        while True:
            report.cycles += 1
            if pending:
                self._run_scopes(pending, report)
            else:
                log.info("All %s scopes hold at least %s providers", len(scopes), threshold)
            self._log_summary(report)
            if max_cycles is not None and report.cycles >= max_cycles:
                break
            if self._should_stop():
                break
            self._sleep(self.settings.loop_interval)
            if self._should_stop():
                break
            pending = [scope for scope in scopes if self._scope_count(scope) < threshold]
        return report

    def _run_scopes(self, scopes: Sequence[ScanScope], report: ScanReport) -> None:
        for index, scope in enumerate(scopes):
            if self._should_stop():
                log.info("Stop requested; %s scopes left unscanned", len(scopes) - index)
                return
            if index:
                self._sleep(self.settings.scope_delay)
            try:
                self._run_scope(scope, report)
            except QuotaExceeded as exc:
                report.quota_exceeded = True
                exc.report = report
                log.error("Quota exhausted during %s; stopping run: %s", scope.label, exc)
                raise
            except SourceApiError as exc:
                report.scopes_failed += 1
                log.error("Source error during %s; abandoning scope: %s", scope.label, exc)

    def _run_scope(self, scope: ScanScope, report: ScanReport) -> None:
        cap = self.settings.max_results
        with self.unit_of_work_factory() as uow:
            if self._already_full(scope, uow):
                report.scopes_skipped += 1
                return

            resolver = ProviderResolver(uow.repositories)
            table = self._category_table(uow)
            log.info("Scanning %s (%r)", scope.label, scope.text_query)

            stored = 0
            token: str | None = None
            while True:
                page = self.source.search(scope.text_query, page_token=token)
                report.pages += 1
                self._sleep(self.settings.page_delay)
                if page.is_empty:
                    break

                for raw in page.records:
                    report.fetched += 1
                    if self._process(raw, scope, uow, resolver, table, report):
                        stored += 1
                    if cap is not None and stored >= cap:
                        break

                token = page.next_page_token
                if not token or (cap is not None and stored >= cap):
                    break

        report.scopes_completed += 1
        log.info("Finished %s: stored=%s", scope.label, stored)

    def _process(
        self,
        raw: Mapping[str, object],
        scope: ScanScope,
        uow: DirectoryUnitOfWork,
        resolver: ProviderResolver,
        table: CategoryTable | None,
        report: ScanReport,
    ) -> bool:
        try:
            record = self.normalizer(raw, self.settings.schema_version)
        except NormalizationError as exc:
            report.skipped += 1
            log.warning("Skipping record in %s: %s", scope.label, exc)
            return False

        try:
            result = resolver.upsert_entity(record, city=scope.city)
            provider = result.provider
            if table is not None:
                text = entity_text(provider.name, provider.raw_payload)
                for match in self.matcher.classify(text, table):
                    resolver.link_category(provider.id, match.category.id, match.score)
                    report.links += 1
            if scope.neighborhood is not None and resolver.assign_neighborhood(
                provider, scope.neighborhood
            ):
                report.assigned += 1
            uow.commit()
        except (EntityResolutionError, StoreError) as exc:
            uow.rollback()
            report.skipped += 1
            log.warning("Could not store %s (%s): %s", record.source_id, record.name, exc)
            return False

        if result.created:
            report.created += 1
        else:
            report.updated += 1
        return True

    def _already_full(self, scope: ScanScope, uow: DirectoryUnitOfWork) -> bool:
        threshold = self.settings.skip_threshold
        if scope.neighborhood is None or threshold is None:
            return False
        count = uow.repositories.providers.count_for_neighborhood(scope.neighborhood.id)
        if count >= threshold:
            log.info("Skipping %s: already has %s providers", scope.label, count)
            return True
        return False

    def _category_table(self, uow: DirectoryUnitOfWork) -> CategoryTable | None:
        if not self.settings.classify or self.taxonomy is None:
            return None
        categories = uow.repositories.categories.list_all()
        return CategoryTable.from_config(categories, self.taxonomy)

    def _scope_count(self, scope: ScanScope) -> int:
        with self.unit_of_work_factory() as uow:
            providers = uow.repositories.providers
            if scope.neighborhood is not None:
                return providers.count_for_neighborhood(scope.neighborhood.id)
            return providers.count_for_city(scope.city.id)

    @staticmethod
    def _log_summary(report: ScanReport) -> None:
        log.info(
            "Scan summary: cycles=%s scopes=%s failed=%s skipped_scopes=%s pages=%s "
            "fetched=%s created=%s updated=%s skipped=%s links=%s assigned=%s",
            report.cycles,
            report.scopes_completed,
            report.scopes_failed,
            report.scopes_skipped,
            report.pages,
            report.fetched,
            report.created,
            report.updated,
            report.skipped,
            report.links,
            report.assigned,
        )
