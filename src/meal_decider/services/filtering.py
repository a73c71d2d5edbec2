"""Hard-constraint filter stage."""

from collections.abc import Callable
from dataclasses import dataclass

from meal_decider.domain.food import FoodFilters, FoodItem
from meal_decider.domain.trace import Rejection


def _fold(values: frozenset[str]) -> frozenset[str]:
    return frozenset(value.casefold() for value in values)


def _meal_type(item: FoodItem, filters: FoodFilters) -> str | None:
    if filters.meal_type is None or filters.meal_type in item.meal_types:
        return None
    return f"not served for {filters.meal_type.value}"


def _include_tags(item: FoodItem, filters: FoodFilters) -> str | None:
    if not filters.include_tags:
        return None
    if _fold(item.tags) & _fold(filters.include_tags):
        return None
    return "missing required tags"


def _exclude_tags(item: FoodItem, filters: FoodFilters) -> str | None:
    hits = _fold(item.tags) & _fold(filters.exclude_tags)
    if not hits:
        return None
    return f"excluded tags: {', '.join(sorted(hits))}"


def _calories(item: FoodItem, filters: FoodFilters) -> str | None:
    if filters.max_calories is None:
        return None
    if item.nutrition is None:
        return "calories unknown"
    if item.nutrition.calories > filters.max_calories:
        return f"calories {item.nutrition.calories:g} > {filters.max_calories:g}"
    return None


def _budget(item: FoodItem, filters: FoodFilters) -> str | None:
    if filters.budget is None:
        return None
    if item.price is None:
        return "price unknown"
    if not item.price.within(filters.budget):
        return "outside budget"
    return None


def _cooking_time(item: FoodItem, filters: FoodFilters) -> str | None:
    if filters.max_cooking_minutes is None:
        return None
    if item.cooking_time_minutes is None:
        return "cooking time unknown"
    if item.cooking_time_minutes > filters.max_cooking_minutes:
        return (
            f"cooking time {item.cooking_time_minutes} min > "
            f"{filters.max_cooking_minutes} min"
        )
    return None


def _allergies(item: FoodItem, filters: FoodFilters) -> str | None:
    hits = _fold(item.allergens) & _fold(filters.allergies)
    if not hits:
        return None
    return f"contains allergens: {', '.join(sorted(hits))}"


PREDICATES: tuple[Callable[[FoodItem, FoodFilters], str | None], ...] = (
    _meal_type,
    _include_tags,
    _exclude_tags,
    _calories,
    _budget,
    _cooking_time,
    _allergies,
)


@dataclass(frozen=True)
class FilterResult:
    """Items that satisfied every constraint, and why the others did not."""

    kept: list[FoodItem]
    rejections: tuple[Rejection, ...]


def violations(item: FoodItem, filters: FoodFilters) -> tuple[str, ...]:
    """Return every constraint the item violates; empty means it passes."""
    reasons = (predicate(item, filters) for predicate in PREDICATES)
    return tuple(reason for reason in reasons if reason is not None)


def apply_filters(pool: list[FoodItem], filters: FoodFilters) -> FilterResult:
    """Keep only items satisfying all hard constraints at once."""
    kept: list[FoodItem] = []
    rejections: list[Rejection] = []
    for item in pool:
        reasons = violations(item, filters)
        if reasons:
            rejections.append(
                Rejection(item_id=item.id, source=item.source, reasons=reasons)
            )
        else:
            kept.append(item)
    return FilterResult(kept=kept, rejections=tuple(rejections))
