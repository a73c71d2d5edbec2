"""Diversity stage: down-weight recently chosen items."""

from dataclasses import dataclass

from meal_decider.domain.food import FoodItem
from meal_decider.domain.suggestions import ScoredFoodItem


@dataclass(frozen=True)
class DiversityPenalty:
    """Multiplier ``1 - strength * decay**k`` for an item last seen at position k."""

    strength: float = 0.6
    decay: float = 0.5

    def __post_init__(self) -> None:
        if not 0.0 <= self.strength <= 1.0:
            raise ValueError("strength must be within [0, 1]")
        if not 0.0 <= self.decay < 1.0:
            raise ValueError("decay must be within [0, 1)")

    def multiplier(self, position: int) -> float:
        """Return the score multiplier for a history position (0 = most recent)."""
        return 1.0 - self.strength * self.decay**position

    def apply(
        self, pool: list[ScoredFoodItem], recent: tuple[FoodItem, ...]
    ) -> list[ScoredFoodItem]:
        """Re-weight repeats; items are never removed."""
        positions: dict[str, int] = {}
        for index, item in enumerate(recent):
            positions.setdefault(item.id, index)
        adjusted = []
        for candidate in pool:
            position = positions.get(candidate.item.id)
            if position is None:
                adjusted.append(candidate)
            else:
                adjusted.append(candidate.with_multiplier(self.multiplier(position)))
        return adjusted
