"""Tests for the decision history service."""

import asyncio
from uuid import UUID

from meal_decider.domain.food import MealType
from meal_decider.domain.suggestions import (
    DecisionAction,
    FoodSuggestion,
    StrategyType,
)
from meal_decider.services.history import HistoryService
from tests.fakes import InMemoryHistoryRepository, make_item


def _suggestion(item_id: str = "salad") -> FoodSuggestion:
    return FoodSuggestion(
        item=make_item(
            item_id,
            source="local",
            tags=("healthy",),
            calories=300,
            price=(4, 8),
            meal_types=(MealType.LUNCH,),
            cooking_time_minutes=10,
            allergens=("sesame",),
        ),
        source="local",
        strategy=StrategyType.RULE_BASED,
        score=0.7,
        reason="Best match out of 2 options (score 0.70).",
    )


def test_logged_suggestion_round_trips_through_observation(user_id: UUID) -> None:
    service = HistoryService(InMemoryHistoryRepository())
    suggestion = _suggestion()

    service.log_decision(user_id, suggestion, DecisionAction.ACCEPTED)

    async def first_update() -> list:
        stream = service.observe_history(user_id, 1)
        try:
            return await anext(stream)
        finally:
            await stream.aclose()

    [log] = asyncio.run(first_update())
    assert log.suggestion == suggestion
    assert log.suggestion.item == suggestion.item
    assert log.suggestion.reason == suggestion.reason
    assert log.action is DecisionAction.ACCEPTED


def test_observe_history_yields_on_change(user_id: UUID) -> None:
    service = HistoryService(InMemoryHistoryRepository(), poll_interval_seconds=0.01)

    async def collect() -> list[list[str]]:
        updates: list[list[str]] = []
        stream = service.observe_history(user_id, 5)
        try:
            updates.append([log.suggestion.item.id for log in await anext(stream)])
            service.log_decision(user_id, _suggestion("pizza"), DecisionAction.REJECTED)
            updates.append([log.suggestion.item.id for log in await anext(stream)])
        finally:
            await stream.aclose()
        return updates

    assert asyncio.run(collect()) == [[], ["pizza"]]


def test_recent_items_are_newest_first_and_windowed(user_id: UUID) -> None:
    service = HistoryService(InMemoryHistoryRepository())
    for item_id in ("soup", "pizza", "salad"):
        service.log_decision(user_id, _suggestion(item_id), DecisionAction.ACCEPTED)

    recent = service.recent_items(user_id, 2)

    assert [item.id for item in recent] == ["salad", "pizza"]


def test_history_is_per_user(user_id: UUID) -> None:
    service = HistoryService(InMemoryHistoryRepository())
    service.log_decision(user_id, _suggestion(), DecisionAction.FAVORITED)

    assert service.list_history(UUID(int=0)) == []
    assert len(service.list_history(user_id)) == 1
