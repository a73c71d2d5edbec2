"""Request payload models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from meal_decider.domain.food import (
    Environment,
    FoodFilters,
    FoodItem,
    MealType,
    NutritionFacts,
    PriceRange,
    UserPreferences,
)
from meal_decider.domain.suggestions import DecisionAction, FoodSuggestion, StrategyType


class BudgetPayload(BaseModel):
    """Inclusive budget range."""

    low: float = Field(default=0.0, ge=0.0)
    high: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _check_order(self) -> "BudgetPayload":
        if self.low > self.high:
            raise ValueError("budget low must not exceed high")
        return self


class FiltersPayload(BaseModel):
    """Hard constraints supplied by the client."""

    meal_type: MealType | None = None
    include_tags: list[str] = Field(default_factory=list)
    exclude_tags: list[str] = Field(default_factory=list)
    max_calories: float | None = Field(default=None, ge=0.0)
    budget: BudgetPayload | None = None
    max_cooking_minutes: int | None = Field(default=None, ge=0)
    allergies: list[str] = Field(default_factory=list)

    def to_domain(self) -> FoodFilters:
        """Convert to the domain filter descriptor."""
        return FoodFilters(
            meal_type=self.meal_type,
            include_tags=frozenset(self.include_tags),
            exclude_tags=frozenset(self.exclude_tags),
            max_calories=self.max_calories,
            budget=(
                PriceRange(low=self.budget.low, high=self.budget.high)
                if self.budget
                else None
            ),
            max_cooking_minutes=self.max_cooking_minutes,
            allergies=frozenset(self.allergies),
        )


class EnvironmentPayload(BaseModel):
    """Client environment descriptor."""

    is_online: bool = True
    location_available: bool = False


class SuggestionRequest(BaseModel):
    """Body of a suggestion request."""

    filters: FiltersPayload = Field(default_factory=FiltersPayload)
    strategy: str | None = None
    cohort: str | None = None
    environment: EnvironmentPayload = Field(default_factory=EnvironmentPayload)

    def environment_domain(self) -> Environment:
        """Convert the environment descriptor."""
        return Environment(
            is_online=self.environment.is_online,
            location_available=self.environment.location_available,
        )


class NutritionPayload(BaseModel):
    calories: float
    protein_g: float = 0.0
    fat_g: float = 0.0
    carbs_g: float = 0.0


class FoodItemPayload(BaseModel):
    """Food item as echoed back by clients."""

    id: str
    name: str
    source: str
    tags: list[str] = Field(default_factory=list)
    nutrition: NutritionPayload | None = None
    price: BudgetPayload | None = None
    meal_types: list[MealType] = Field(default_factory=list)
    cooking_time_minutes: int | None = None
    allergens: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None

    def to_domain(self) -> FoodItem:
        return FoodItem(
            id=self.id,
            name=self.name,
            source=self.source,
            tags=frozenset(self.tags),
            nutrition=(
                NutritionFacts(**self.nutrition.model_dump())
                if self.nutrition
                else None
            ),
            price=(
                PriceRange(low=self.price.low, high=self.price.high)
                if self.price
                else None
            ),
            meal_types=frozenset(self.meal_types),
            cooking_time_minutes=self.cooking_time_minutes,
            allergens=frozenset(self.allergens),
            updated_at=self.updated_at,
        )


class SuggestionPayload(BaseModel):
    """Suggestion as returned by the suggestions endpoint."""

    item: FoodItemPayload
    source: str
    strategy: StrategyType
    score: float
    reason: str

    @model_validator(mode="after")
    def _check_source(self) -> "SuggestionPayload":
        if self.source != self.item.source:
            raise ValueError("suggestion source must match the item source")
        return self

    def to_domain(self) -> FoodSuggestion:
        return FoodSuggestion(
            item=self.item.to_domain(),
            source=self.source,
            strategy=self.strategy,
            score=self.score,
            reason=self.reason,
        )


class DecisionRequest(BaseModel):
    """Body of a decision log request."""

    suggestion: SuggestionPayload
    action: DecisionAction


class PreferencesPayload(BaseModel):
    """User preferences snapshot."""

    liked_tags: list[str] = Field(default_factory=list)
    disliked_tags: list[str] = Field(default_factory=list)
    favorite_item_ids: list[str] = Field(default_factory=list)
    calorie_target: float | None = Field(default=None, gt=0.0)
    allergies: list[str] = Field(default_factory=list)

    def to_domain(self) -> UserPreferences:
        return UserPreferences(
            liked_tags=frozenset(self.liked_tags),
            disliked_tags=frozenset(self.disliked_tags),
            favorite_item_ids=frozenset(self.favorite_item_ids),
            calorie_target=self.calorie_target,
            allergies=frozenset(self.allergies),
        )
