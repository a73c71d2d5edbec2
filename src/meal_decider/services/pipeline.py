"""Pipeline orchestrator: aggregate, filter, score, diversify, select."""

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from meal_decider.domain.errors import (
    FilteredToEmptyError,
    NoCandidatesError,
    PipelineError,
    StrategyError,
    UnknownStrategyError,
)
from meal_decider.domain.food import FoodFilters, SelectionContext
from meal_decider.domain.suggestions import FoodSuggestion, StrategyType
from meal_decider.domain.trace import (
    PipelineStage,
    PipelineTrace,
    Rejection,
    SourceOutcome,
)
from meal_decider.services.diversity import DiversityPenalty
from meal_decider.services.filtering import apply_filters
from meal_decider.services.resolver import StrategyResolver
from meal_decider.services.scoring import Scorer
from meal_decider.services.sources import SourceAggregator
from meal_decider.services.tracing import TraceSink

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineRun:
    """Successful pipeline outcome."""

    suggestion: FoodSuggestion
    trace: PipelineTrace

    @property
    def trace_id(self) -> UUID:
        """Correlation id of the run."""
        return self.trace.trace_id


@dataclass
class _RunRecorder:
    """Mutable scratchpad for a run; frozen into a PipelineTrace at the end."""

    filters: FoodFilters
    trace_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    stage: PipelineStage = PipelineStage.START
    strategy: StrategyType | None = None
    pool_sizes: dict[str, int] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)
    source_outcomes: tuple[SourceOutcome, ...] = ()
    rejections: tuple[Rejection, ...] = ()
    scores: dict[str, float] = field(default_factory=dict)
    _stage_started: float = 0.0

    def enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        self._stage_started = time.perf_counter()

    def leave(self, pool_size: int) -> None:
        elapsed = time.perf_counter() - self._stage_started
        self.timings[self.stage.value] = elapsed * 1000
        self.pool_sizes[self.stage.value] = pool_size

    def freeze(
        self,
        suggestion: FoodSuggestion | None = None,
        error: PipelineError | None = None,
    ) -> PipelineTrace:
        return PipelineTrace(
            trace_id=self.trace_id,
            started_at=self.started_at,
            filters=self.filters,
            strategy=self.strategy,
            pool_sizes=dict(self.pool_sizes),
            stage_timings_ms=dict(self.timings),
            source_outcomes=self.source_outcomes,
            rejections=self.rejections,
            scores=dict(self.scores),
            suggestion=suggestion,
            failed_stage=self.stage if error is not None else None,
            failure=f"{type(error).__name__}: {error}" if error is not None else None,
        )


@dataclass
class SuggestionPipeline:
    """Single entry point that turns filters and context into a suggestion."""

    aggregator: SourceAggregator
    scorer: Scorer
    diversity: DiversityPenalty
    resolver: StrategyResolver
    trace_sink: TraceSink
    fetch_timeout_seconds: float = 3.0

    async def suggest(
        self,
        filters: FoodFilters,
        context: SelectionContext,
        strategy: str | StrategyType | None = None,
        cohort: str | None = None,
    ) -> PipelineRun:
        """Run every stage in order and return the chosen suggestion.

        Raises NoCandidatesError, FilteredToEmptyError or StrategyError; each
        carries the failing stage, per-stage pool sizes and the trace id.
        Cancellation propagates to outstanding fetches and emits no trace.
        """
        run = _RunRecorder(filters=filters)
        try:
            suggestion = await self._execute(run, filters, context, strategy, cohort)
        except PipelineError as exc:
            exc.stage = run.stage
            exc.filters = filters
            exc.pool_sizes = dict(run.pool_sizes)
            exc.trace_id = run.trace_id
            self._emit(run.freeze(error=exc))
            raise
        run.stage = PipelineStage.DONE
        trace = run.freeze(suggestion=suggestion)
        self._emit(trace)
        return PipelineRun(suggestion=suggestion, trace=trace)

    async def _execute(
        self,
        run: _RunRecorder,
        filters: FoodFilters,
        context: SelectionContext,
        requested: str | StrategyType | None,
        cohort: str | None,
    ) -> FoodSuggestion:
        run.enter(PipelineStage.AGGREGATE)
        aggregated = await self.aggregator.aggregate(
            filters, context.environment, self.fetch_timeout_seconds
        )
        run.source_outcomes = aggregated.outcomes
        run.leave(len(aggregated.items))
        if not aggregated.items:
            raise NoCandidatesError("No data source returned candidates")

        run.enter(PipelineStage.FILTER)
        filtered = apply_filters(aggregated.items, filters)
        run.rejections = filtered.rejections
        run.leave(len(filtered.kept))
        if not filtered.kept:
            raise FilteredToEmptyError(
                f"All {len(aggregated.items)} candidates violated the filters"
            )

        run.enter(PipelineStage.SCORE)
        scored = self.scorer.score_pool(filtered.kept, context)
        run.leave(len(scored))

        run.enter(PipelineStage.DIVERSITY_ADJUST)
        adjusted = self.diversity.apply(scored, context.recent_decisions)
        run.scores = {candidate.item.id: candidate.score for candidate in adjusted}
        run.leave(len(adjusted))

        run.enter(PipelineStage.SELECT)
        try:
            strategy = self.resolver.resolve_or_default(requested, cohort)
        except UnknownStrategyError as exc:
            raise StrategyError(f"No usable strategy: {exc}") from exc
        run.strategy = strategy.strategy_type
        try:
            suggestion = await strategy.pick(adjusted, filters, context)
        except StrategyError:
            raise
        except Exception as exc:
            raise StrategyError(
                f"{strategy.strategy_type.value} strategy failed: {exc}"
            ) from exc
        run.leave(1)
        return suggestion

    def _emit(self, trace: PipelineTrace) -> None:
        """Hand the trace to the sink; sink failures never fail the run."""
        try:
            self.trace_sink.log(trace)
        except Exception:
            _logger.exception("Failed to record pipeline trace %s", trace.trace_id)
