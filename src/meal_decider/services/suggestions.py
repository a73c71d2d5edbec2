"""Application service that prepares pipeline inputs for a user."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import UUID

from meal_decider.domain.food import Environment, FoodFilters, SelectionContext
from meal_decider.domain.suggestions import (
    DecisionAction,
    DecisionLog,
    FoodSuggestion,
    StrategyType,
)
from meal_decider.services.history import HistoryService
from meal_decider.services.pipeline import PipelineRun, SuggestionPipeline
from meal_decider.services.preferences import PreferenceService


@dataclass
class SuggestionService:
    """Builds the selection context from stored state and runs the pipeline."""

    pipeline: SuggestionPipeline
    preference_service: PreferenceService
    history_service: HistoryService
    history_window: int = 10

    def build_context(
        self, user_id: UUID, environment: Environment | None = None
    ) -> SelectionContext:
        """Materialize preferences and recent decisions for one run."""
        return SelectionContext(
            recent_decisions=self.history_service.recent_items(
                user_id, self.history_window
            ),
            preferences=self.preference_service.get_preferences(user_id),
            timestamp=datetime.now(tz=UTC),
            environment=environment or Environment(),
            history_window=self.history_window,
        )

    async def suggest(
        self,
        user_id: UUID,
        filters: FoodFilters,
        environment: Environment | None = None,
        strategy: str | StrategyType | None = None,
        cohort: str | None = None,
    ) -> PipelineRun:
        """Suggest something to eat; stored allergies always apply."""
        context = self.build_context(user_id, environment)
        allergies = filters.allergies | context.preferences.allergies
        if allergies != filters.allergies:
            filters = replace(filters, allergies=allergies)
        return await self.pipeline.suggest(filters, context, strategy, cohort)

    def record_decision(
        self, user_id: UUID, suggestion: FoodSuggestion, action: DecisionAction
    ) -> DecisionLog:
        """Log a decision; favoriting also stores the item as a favorite."""
        log = self.history_service.log_decision(user_id, suggestion, action)
        if action is DecisionAction.FAVORITED:
            self.preference_service.add_favorite(user_id, suggestion.item.id)
        return log
