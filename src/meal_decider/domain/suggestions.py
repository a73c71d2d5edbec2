"""Domain models for scored candidates, suggestions and decisions."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from meal_decider.domain.food import FoodItem


class StrategyType(Enum):
    """Registered selection strategy kinds."""

    RANDOM = "random"
    WEIGHTED_RANDOM = "weighted_random"
    RULE_BASED = "rule_based"
    MODEL_RANKED = "model_ranked"


class DecisionAction(Enum):
    """Action a user took on a suggestion."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAVORITED = "favorited"


@dataclass(frozen=True)
class ScoreBreakdown:
    """Sub-scores that produced a candidate's score."""

    preference: float
    nutrition: float
    freshness: float
    favorite: float
    diversity_multiplier: float = 1.0


@dataclass(frozen=True)
class ScoredFoodItem:
    """Food item with its score and scoring breakdown."""

    item: FoodItem
    score: float
    breakdown: ScoreBreakdown

    def with_multiplier(self, multiplier: float) -> "ScoredFoodItem":
        """Return a re-weighted copy; the original is left untouched."""
        return replace(
            self,
            score=self.score * multiplier,
            breakdown=replace(
                self.breakdown,
                diversity_multiplier=self.breakdown.diversity_multiplier * multiplier,
            ),
        )


@dataclass(frozen=True)
class FoodSuggestion:
    """The single output of a pipeline run."""

    item: FoodItem
    source: str
    strategy: StrategyType
    score: float
    reason: str

    @classmethod
    def from_scored(
        cls, candidate: ScoredFoodItem, strategy: StrategyType, reason: str
    ) -> "FoodSuggestion":
        """Build a suggestion keeping the item's recorded origin."""
        return cls(
            item=candidate.item,
            source=candidate.item.source,
            strategy=strategy,
            score=candidate.score,
            reason=reason,
        )


@dataclass(frozen=True)
class DecisionLog:
    """A suggestion paired with the action taken on it."""

    suggestion: FoodSuggestion
    action: DecisionAction
    decided_at: datetime
