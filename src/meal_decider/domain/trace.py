"""Diagnostic trace records for pipeline runs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from meal_decider.domain.food import FoodFilters
from meal_decider.domain.suggestions import FoodSuggestion, StrategyType


class PipelineStage(Enum):
    """Pipeline states, in execution order."""

    START = "start"
    AGGREGATE = "aggregate"
    FILTER = "filter"
    SCORE = "score"
    DIVERSITY_ADJUST = "diversity_adjust"
    SELECT = "select"
    DONE = "done"
    FAILED = "failed"


class SourceStatus(Enum):
    """Outcome of a single data source during aggregation."""

    OK = "ok"
    FAILED = "failed"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"
    DISABLED = "disabled"
    OFFLINE = "offline"


@dataclass(frozen=True)
class SourceOutcome:
    """What one data source contributed to a run."""

    source_id: str
    status: SourceStatus
    item_count: int = 0
    elapsed_ms: float = 0.0
    error: str | None = None


@dataclass(frozen=True)
class Rejection:
    """An item removed by the filter stage and why."""

    item_id: str
    source: str
    reasons: tuple[str, ...]


@dataclass(frozen=True)
class PipelineTrace:
    """Intermediate state and outcome of one pipeline run."""

    trace_id: UUID
    started_at: datetime
    filters: FoodFilters
    strategy: StrategyType | None = None
    pool_sizes: dict[str, int] = field(default_factory=dict)
    stage_timings_ms: dict[str, float] = field(default_factory=dict)
    source_outcomes: tuple[SourceOutcome, ...] = ()
    rejections: tuple[Rejection, ...] = ()
    scores: dict[str, float] = field(default_factory=dict)
    suggestion: FoodSuggestion | None = None
    failed_stage: PipelineStage | None = None
    failure: str | None = None

    @property
    def succeeded(self) -> bool:
        """Return True when the run produced a suggestion."""
        return self.suggestion is not None
