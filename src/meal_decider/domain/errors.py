"""Error taxonomy for the suggestion pipeline."""

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from meal_decider.domain.food import FoodFilters
    from meal_decider.domain.trace import PipelineStage

USER_FACING_MESSAGE = "We couldn't find something to eat right now. Please try again."


class MealDeciderError(Exception):
    """Base class for application errors."""


class SourceError(MealDeciderError):
    """A data source failed to fetch; always recovered inside aggregation."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


class UnknownStrategyError(MealDeciderError):
    """The requested strategy has no registered, enabled implementation."""

    def __init__(self, requested: str) -> None:
        super().__init__(f"Unknown strategy: {requested}")
        self.requested = requested


class PipelineError(MealDeciderError):
    """Terminal failure of a pipeline run."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.stage: PipelineStage | None = None
        self.filters: FoodFilters | None = None
        self.pool_sizes: dict[str, int] = {}
        self.trace_id: UUID | None = None

    @property
    def user_message(self) -> str:
        """Return the message safe to show to end users."""
        return USER_FACING_MESSAGE


class NoCandidatesError(PipelineError):
    """Every source was unsupported, empty or failed."""


class FilteredToEmptyError(PipelineError):
    """Candidates were fetched but none satisfied the filters."""


class StrategyError(PipelineError):
    """A selection strategy failed to produce a suggestion."""
