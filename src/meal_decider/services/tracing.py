"""Trace sinks for pipeline diagnostics."""

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from meal_decider.domain.food import FoodFilters
from meal_decider.domain.trace import PipelineTrace

_logger = logging.getLogger(__name__)


class TraceSink(Protocol):
    """Write-only destination for pipeline traces."""

    def log(self, trace: PipelineTrace) -> None:
        """Record a trace."""


@dataclass
class LoggingTraceSink(TraceSink):
    """Writes one structured log line per run."""

    level: int = logging.INFO

    def log(self, trace: PipelineTrace) -> None:
        """Emit a trace summary as JSON on the module logger."""
        _logger.log(self.level, "Pipeline trace %s", json.dumps(trace_summary(trace)))


@dataclass
class InMemoryTraceSink(TraceSink):
    """Keeps the most recent traces for lookup by correlation id."""

    capacity: int = 500
    _traces: OrderedDict[UUID, PipelineTrace] = field(default_factory=OrderedDict)

    def log(self, trace: PipelineTrace) -> None:
        """Store a trace, evicting the oldest beyond capacity."""
        self._traces[trace.trace_id] = trace
        while len(self._traces) > self.capacity:
            self._traces.popitem(last=False)

    def get(self, trace_id: UUID) -> PipelineTrace | None:
        """Return a stored trace, if still retained."""
        return self._traces.get(trace_id)

    def recent(self, limit: int = 20) -> list[PipelineTrace]:
        """Return the newest traces first."""
        return list(reversed(self._traces.values()))[:limit]


@dataclass
class CompositeTraceSink(TraceSink):
    """Fans a trace out to several sinks; one failing sink does not stop others."""

    sinks: list[TraceSink]

    def log(self, trace: PipelineTrace) -> None:
        """Forward the trace to every sink."""
        for sink in self.sinks:
            try:
                sink.log(trace)
            except Exception:
                _logger.exception("Trace sink %s failed", type(sink).__name__)


def filters_to_dict(filters: FoodFilters) -> dict[str, object]:
    """Serialize filters to JSON-compatible data."""
    return {
        "meal_type": filters.meal_type.value if filters.meal_type else None,
        "include_tags": sorted(filters.include_tags),
        "exclude_tags": sorted(filters.exclude_tags),
        "max_calories": filters.max_calories,
        "budget": (
            [filters.budget.low, filters.budget.high] if filters.budget else None
        ),
        "max_cooking_minutes": filters.max_cooking_minutes,
        "allergies": sorted(filters.allergies),
    }


def trace_summary(trace: PipelineTrace) -> dict[str, object]:
    """Serialize a trace to JSON-compatible data."""
    suggestion = trace.suggestion
    return {
        "trace_id": str(trace.trace_id),
        "started_at": trace.started_at.isoformat(),
        "filters": filters_to_dict(trace.filters),
        "strategy": trace.strategy.value if trace.strategy else None,
        "pool_sizes": trace.pool_sizes,
        "stage_timings_ms": {
            stage: round(elapsed, 3)
            for stage, elapsed in trace.stage_timings_ms.items()
        },
        "sources": [
            {
                "source_id": outcome.source_id,
                "status": outcome.status.value,
                "item_count": outcome.item_count,
                "elapsed_ms": round(outcome.elapsed_ms, 3),
                "error": outcome.error,
            }
            for outcome in trace.source_outcomes
        ],
        "rejections": [
            {
                "item_id": rejection.item_id,
                "source": rejection.source,
                "reasons": list(rejection.reasons),
            }
            for rejection in trace.rejections
        ],
        "scores": trace.scores,
        "suggestion": (
            {
                "item_id": suggestion.item.id,
                "name": suggestion.item.name,
                "source": suggestion.source,
                "strategy": suggestion.strategy.value,
                "score": suggestion.score,
                "reason": suggestion.reason,
            }
            if suggestion
            else None
        ),
        "failed_stage": trace.failed_stage.value if trace.failed_stage else None,
        "failure": trace.failure,
    }
