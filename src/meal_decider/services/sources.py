"""Data source abstraction and the concurrent aggregation stage."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

from meal_decider.domain.food import Environment, FoodFilters, FoodItem
from meal_decider.domain.trace import SourceOutcome, SourceStatus
from meal_decider.services.toggles import FeatureToggle, source_flag

_logger = logging.getLogger(__name__)

UNKNOWN_PRIORITY = 1_000_000


class DataSource(Protocol):
    """Interface for a catalog that can provide candidate food items."""

    source_id: str
    priority: int
    requires_network: bool

    def supports(self, filters: FoodFilters) -> bool:
        """Return True if this source can serve the filters. Must not do I/O."""

    async def fetch(self, filters: FoodFilters, *, timeout: float) -> list[FoodItem]:
        """Return candidate items, raising SourceError on failure."""


@dataclass
class SourceRegistry:
    """Append-only set of data sources built at startup."""

    _sources: dict[str, DataSource] = field(default_factory=dict)

    def register(self, source: DataSource) -> None:
        """Add a data source; ids must be unique."""
        if source.source_id in self._sources:
            raise ValueError(f"Data source already registered: {source.source_id}")
        self._sources[source.source_id] = source

    def sources(self) -> list[DataSource]:
        """Return sources ordered by priority, then id."""
        return sorted(
            self._sources.values(), key=lambda src: (src.priority, src.source_id)
        )

    def priority_of(self, source_id: str) -> int:
        """Return the priority of a source, or a large value if unknown."""
        source = self._sources.get(source_id)
        if source is None:
            return UNKNOWN_PRIORITY
        return source.priority

    def __len__(self) -> int:
        return len(self._sources)


@dataclass(frozen=True)
class AggregationResult:
    """Merged candidate pool plus per-source outcomes."""

    items: list[FoodItem]
    outcomes: tuple[SourceOutcome, ...]
    fetched_count: int


@dataclass
class SourceAggregator:
    """Fetch from every eligible source concurrently and merge the results."""

    registry: SourceRegistry
    toggles: FeatureToggle

    async def aggregate(
        self,
        filters: FoodFilters,
        environment: Environment,
        timeout: float,
    ) -> AggregationResult:
        """Query eligible sources until all finish or the timeout elapses."""
        outcomes: dict[str, SourceOutcome] = {}
        eligible: list[DataSource] = []
        for source in self.registry.sources():
            skipped = self._skip_status(source, filters, environment)
            if skipped is not None:
                outcomes[source.source_id] = SourceOutcome(
                    source_id=source.source_id, status=skipped
                )
                continue
            eligible.append(source)

        tasks = {
            source.source_id: asyncio.create_task(
                _timed_fetch(source, filters, timeout),
                name=f"fetch:{source.source_id}",
            )
            for source in eligible
        }
        try:
            if tasks:
                await asyncio.wait(tasks.values(), timeout=timeout)
        finally:
            pending = [task for task in tasks.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        fetched: list[tuple[DataSource, list[FoodItem]]] = []
        for source in eligible:
            outcome, items = _collect(source, tasks[source.source_id])
            outcomes[source.source_id] = outcome
            if items:
                fetched.append((source, items))

        ordered = tuple(
            outcomes[source.source_id] for source in self.registry.sources()
        )
        return AggregationResult(
            items=merge_items(fetched),
            outcomes=ordered,
            fetched_count=sum(len(items) for _, items in fetched),
        )

    def _skip_status(
        self, source: DataSource, filters: FoodFilters, environment: Environment
    ) -> SourceStatus | None:
        if not self.toggles.is_enabled(source_flag(source.source_id)):
            return SourceStatus.DISABLED
        if source.requires_network and not environment.is_online:
            return SourceStatus.OFFLINE
        if not source.supports(filters):
            return SourceStatus.UNSUPPORTED
        return None


def merge_items(fetched: list[tuple[DataSource, list[FoodItem]]]) -> list[FoodItem]:
    """Deduplicate items by id, keeping the copy from the lowest priority source.

    Ties between equal priorities are broken by source id, so the merged pool
    does not depend on the order sources finished in.
    """
    best: dict[str, tuple[tuple[int, str], FoodItem]] = {}
    for source, items in fetched:
        rank = (source.priority, source.source_id)
        for item in items:
            current = best.get(item.id)
            if current is None or rank < current[0]:
                best[item.id] = (rank, item)
    ordered = sorted(best.values(), key=lambda entry: (entry[0], entry[1].id))
    return [item for _, item in ordered]


async def _timed_fetch(
    source: DataSource, filters: FoodFilters, timeout: float
) -> tuple[list[FoodItem], float]:
    started = time.perf_counter()
    items = await source.fetch(filters, timeout=timeout)
    return list(items), (time.perf_counter() - started) * 1000


def _collect(
    source: DataSource, task: "asyncio.Task[tuple[list[FoodItem], float]]"
) -> tuple[SourceOutcome, list[FoodItem]]:
    """Turn a finished (or cancelled) fetch task into an outcome."""
    if task.cancelled():
        _logger.warning("Data source %s timed out", source.source_id)
        return (
            SourceOutcome(source_id=source.source_id, status=SourceStatus.TIMEOUT),
            [],
        )
    exc = task.exception()
    if exc is not None:
        _logger.warning("Data source %s failed: %s", source.source_id, exc)
        return (
            SourceOutcome(
                source_id=source.source_id,
                status=SourceStatus.FAILED,
                error=f"{type(exc).__name__}: {exc}",
            ),
            [],
        )
    items, elapsed_ms = task.result()
    return (
        SourceOutcome(
            source_id=source.source_id,
            status=SourceStatus.OK,
            item_count=len(items),
            elapsed_ms=elapsed_ms,
        ),
        items,
    )
