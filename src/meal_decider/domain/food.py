"""Domain models for food items and selection inputs."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

DEFAULT_HISTORY_WINDOW = 10


class MealType(Enum):
    """Meal slot a food item is suitable for."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class NutritionFacts:
    """Nutrition facts for one serving."""

    calories: float
    protein_g: float = 0.0
    fat_g: float = 0.0
    carbs_g: float = 0.0


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price range."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"Invalid price range: {self.low} > {self.high}")

    def within(self, budget: "PriceRange") -> bool:
        """Return True when this range fits entirely inside the budget."""
        return budget.low <= self.low and self.high <= budget.high


@dataclass(frozen=True)
class FoodItem:
    """Candidate food item as reported by a data source."""

    id: str
    name: str
    source: str
    tags: frozenset[str] = frozenset()
    nutrition: NutritionFacts | None = None
    price: PriceRange | None = None
    meal_types: frozenset[MealType] = frozenset()
    cooking_time_minutes: int | None = None
    allergens: frozenset[str] = frozenset()
    updated_at: datetime | None = None


@dataclass(frozen=True)
class FoodFilters:
    """Hard constraints for a pipeline run."""

    meal_type: MealType | None = None
    include_tags: frozenset[str] = frozenset()
    exclude_tags: frozenset[str] = frozenset()
    max_calories: float | None = None
    budget: PriceRange | None = None
    max_cooking_minutes: int | None = None
    allergies: frozenset[str] = frozenset()


@dataclass(frozen=True)
class UserPreferences:
    """Soft preferences used for scoring."""

    liked_tags: frozenset[str] = frozenset()
    disliked_tags: frozenset[str] = frozenset()
    favorite_item_ids: frozenset[str] = frozenset()
    calorie_target: float | None = None
    allergies: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Environment:
    """Runtime environment of the caller."""

    is_online: bool = True
    location_available: bool = False


@dataclass(frozen=True)
class SelectionContext:
    """Per-run context. Recent decisions are ordered most-recent-first."""

    recent_decisions: tuple[FoodItem, ...] = ()
    preferences: UserPreferences = field(default_factory=UserPreferences)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    environment: Environment = field(default_factory=Environment)
    history_window: int = DEFAULT_HISTORY_WINDOW

    def __post_init__(self) -> None:
        if self.history_window < 0:
            raise ValueError("history_window must be non-negative")
        recent = tuple(self.recent_decisions)[: self.history_window]
        object.__setattr__(self, "recent_decisions", recent)
