"""Score stage: weighted soft-preference scoring."""

import math
from dataclasses import dataclass
from datetime import datetime

from meal_decider.domain.food import FoodItem, SelectionContext, UserPreferences
from meal_decider.domain.suggestions import ScoreBreakdown, ScoredFoodItem

NEUTRAL = 0.5


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weight of each sub-score."""

    preference: float = 0.5
    nutrition: float = 0.25
    freshness: float = 0.15
    favorite: float = 0.1

    def __post_init__(self) -> None:
        for name in ("preference", "nutrition", "freshness", "favorite"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Weight {name} must be finite and >= 0: {value}")


@dataclass
class Scorer:
    """Assigns a deterministic score to each candidate."""

    weights: ScoringWeights
    freshness_half_life_days: float = 30.0

    def score_pool(
        self, items: list[FoodItem], context: SelectionContext
    ) -> list[ScoredFoodItem]:
        """Score every item; the pool order is preserved."""
        return [self.score_item(item, context) for item in items]

    def score_item(self, item: FoodItem, context: SelectionContext) -> ScoredFoodItem:
        """Score a single item against the user's preferences."""
        prefs = context.preferences
        breakdown = ScoreBreakdown(
            preference=preference_score(item, prefs),
            nutrition=nutrition_score(item, prefs),
            freshness=freshness_score(
                item, context.timestamp, self.freshness_half_life_days
            ),
            favorite=1.0 if item.id in prefs.favorite_item_ids else 0.0,
        )
        total = (
            self.weights.preference * breakdown.preference
            + self.weights.nutrition * breakdown.nutrition
            + self.weights.freshness * breakdown.freshness
            + self.weights.favorite * breakdown.favorite
        )
        return ScoredFoodItem(item=item, score=_finite(total), breakdown=breakdown)


def preference_score(item: FoodItem, prefs: UserPreferences) -> float:
    """Share of liked tags raises the score, share of disliked tags lowers it."""
    tags = {tag.casefold() for tag in item.tags}
    if not tags:
        return NEUTRAL
    liked = len(tags & {tag.casefold() for tag in prefs.liked_tags}) / len(tags)
    disliked = len(tags & {tag.casefold() for tag in prefs.disliked_tags}) / len(tags)
    return _clamp(NEUTRAL + 0.5 * liked - 0.5 * disliked)


def nutrition_score(item: FoodItem, prefs: UserPreferences) -> float:
    """Closeness of the item's calories to the user's calorie target."""
    target = prefs.calorie_target
    if item.nutrition is None or target is None or target <= 0:
        return NEUTRAL
    distance = abs(item.nutrition.calories - target) / target
    return _clamp(1.0 - distance)


def freshness_score(item: FoodItem, now: datetime, half_life_days: float) -> float:
    """Exponential decay of the catalog entry's age."""
    if item.updated_at is None or half_life_days <= 0:
        return NEUTRAL
    if (item.updated_at.tzinfo is None) != (now.tzinfo is None):
        return NEUTRAL
    age_days = max((now - item.updated_at).total_seconds(), 0.0) / 86400
    return _clamp(0.5 ** (age_days / half_life_days))


def _clamp(value: float) -> float:
    return min(max(_finite(value), 0.0), 1.0)


def _finite(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(value, 0.0)
