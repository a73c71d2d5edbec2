"""Conversions between domain models and flat storage/API rows."""

from datetime import UTC, datetime

from meal_decider.domain.food import (
    FoodItem,
    MealType,
    NutritionFacts,
    PriceRange,
    UserPreferences,
)
from meal_decider.domain.suggestions import (
    DecisionAction,
    DecisionLog,
    FoodSuggestion,
    StrategyType,
)


def item_to_row(item: FoodItem) -> dict[str, object]:
    """Flatten a food item into JSON-compatible data."""
    nutrition = item.nutrition
    return {
        "id": item.id,
        "name": item.name,
        "source": item.source,
        "tags": sorted(item.tags),
        "calories": nutrition.calories if nutrition else None,
        "protein_g": nutrition.protein_g if nutrition else None,
        "fat_g": nutrition.fat_g if nutrition else None,
        "carbs_g": nutrition.carbs_g if nutrition else None,
        "price_low": item.price.low if item.price else None,
        "price_high": item.price.high if item.price else None,
        "meal_types": sorted(meal_type.value for meal_type in item.meal_types),
        "cooking_time_minutes": item.cooking_time_minutes,
        "allergens": sorted(item.allergens),
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
    }


def item_from_row(row: dict[str, object], source: str | None = None) -> FoodItem:
    """Parse a flat row; ``source`` overrides the row's own source field."""
    calories = row.get("calories")
    nutrition = None
    if calories is not None:
        nutrition = NutritionFacts(
            calories=float(calories),
            protein_g=float(row.get("protein_g") or 0.0),
            fat_g=float(row.get("fat_g") or 0.0),
            carbs_g=float(row.get("carbs_g") or 0.0),
        )
    price = None
    if row.get("price_low") is not None and row.get("price_high") is not None:
        price = PriceRange(low=float(row["price_low"]), high=float(row["price_high"]))
    cooking_time = row.get("cooking_time_minutes")
    updated_at = row.get("updated_at")
    return FoodItem(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        source=source or str(row.get("source", "")),
        tags=frozenset(str(tag) for tag in row.get("tags") or []),
        nutrition=nutrition,
        price=price,
        meal_types=frozenset(MealType(value) for value in row.get("meal_types") or []),
        cooking_time_minutes=int(cooking_time) if cooking_time is not None else None,
        allergens=frozenset(str(value) for value in row.get("allergens") or []),
        updated_at=_parse_timestamp(updated_at) if updated_at else None,
    )


def suggestion_to_row(suggestion: FoodSuggestion) -> dict[str, object]:
    """Serialize a suggestion including its full item."""
    return {
        "item": item_to_row(suggestion.item),
        "source": suggestion.source,
        "strategy": suggestion.strategy.value,
        "score": suggestion.score,
        "reason": suggestion.reason,
    }


def suggestion_from_row(row: dict[str, object]) -> FoodSuggestion:
    """Parse a serialized suggestion."""
    return FoodSuggestion(
        item=item_from_row(row["item"]),
        source=str(row["source"]),
        strategy=StrategyType(row["strategy"]),
        score=float(row["score"]),
        reason=str(row.get("reason", "")),
    )


def decision_from_row(row: dict[str, object]) -> DecisionLog:
    """Parse a stored decision log row."""
    return DecisionLog(
        suggestion=suggestion_from_row(row["suggestion"]),
        action=DecisionAction(row["action"]),
        decided_at=_parse_timestamp(row["decided_at"]),
    )


def preferences_to_row(preferences: UserPreferences) -> dict[str, object]:
    """Serialize preferences."""
    return {
        "liked_tags": sorted(preferences.liked_tags),
        "disliked_tags": sorted(preferences.disliked_tags),
        "favorite_item_ids": sorted(preferences.favorite_item_ids),
        "calorie_target": preferences.calorie_target,
        "allergies": sorted(preferences.allergies),
    }


def preferences_from_row(row: dict[str, object]) -> UserPreferences:
    """Parse stored preferences."""
    calorie_target = row.get("calorie_target")
    return UserPreferences(
        liked_tags=frozenset(row.get("liked_tags") or []),
        disliked_tags=frozenset(row.get("disliked_tags") or []),
        favorite_item_ids=frozenset(row.get("favorite_item_ids") or []),
        calorie_target=float(calorie_target) if calorie_target is not None else None,
        allergies=frozenset(row.get("allergies") or []),
    )


def _parse_timestamp(value: object) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
