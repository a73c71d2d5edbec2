"""Tests for the score stage."""

import math
from datetime import UTC, datetime, timedelta

import pytest

from meal_decider.domain.food import SelectionContext, UserPreferences
from meal_decider.services.scoring import (
    Scorer,
    ScoringWeights,
    freshness_score,
    nutrition_score,
    preference_score,
)
from tests.fakes import make_item

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _context(**prefs) -> SelectionContext:  # type: ignore[no-untyped-def]
    return SelectionContext(preferences=UserPreferences(**prefs), timestamp=NOW)


def test_score_is_reproducible() -> None:
    scorer = Scorer(weights=ScoringWeights())
    item = make_item(
        "salad",
        tags=("healthy", "fresh"),
        calories=350,
        updated_at=NOW - timedelta(days=3),
    )
    context = _context(liked_tags=frozenset({"healthy"}), calorie_target=400)

    first = scorer.score_item(item, context)
    second = scorer.score_item(item, context)

    assert first == second
    assert first.score == second.score


def test_liked_tags_outscore_disliked_tags() -> None:
    prefs = UserPreferences(
        liked_tags=frozenset({"healthy"}), disliked_tags=frozenset({"fried"})
    )

    liked = preference_score(make_item("salad", tags=("healthy",)), prefs)
    neutral = preference_score(make_item("rice", tags=("plain",)), prefs)
    disliked = preference_score(make_item("fries", tags=("fried",)), prefs)

    assert liked == 1.0
    assert neutral == 0.5
    assert disliked == 0.0


def test_nutrition_fit_prefers_calories_near_target() -> None:
    prefs = UserPreferences(calorie_target=500)

    assert nutrition_score(make_item("a", calories=500), prefs) == 1.0
    assert nutrition_score(make_item("b", calories=600), prefs) == pytest.approx(0.8)
    assert nutrition_score(make_item("c", calories=2000), prefs) == 0.0
    assert nutrition_score(make_item("d"), prefs) == 0.5


def test_freshness_decays_with_age() -> None:
    fresh = make_item("a", updated_at=NOW)
    month_old = make_item("b", updated_at=NOW - timedelta(days=30))

    assert freshness_score(fresh, NOW, 30.0) == 1.0
    assert freshness_score(month_old, NOW, 30.0) == pytest.approx(0.5)
    assert freshness_score(make_item("c"), NOW, 30.0) == 0.5


def test_favorites_get_a_bonus() -> None:
    scorer = Scorer(weights=ScoringWeights())
    context = _context(favorite_item_ids=frozenset({"pizza"}))

    favorite = scorer.score_item(make_item("pizza"), context)
    other = scorer.score_item(make_item("pasta"), context)

    assert favorite.breakdown.favorite == 1.0
    assert favorite.score == pytest.approx(other.score + 0.1)


def test_score_stays_finite_for_bad_nutrition_data() -> None:
    scorer = Scorer(weights=ScoringWeights())
    item = make_item("broken", calories=float("nan"))

    scored = scorer.score_item(item, _context(calorie_target=500))

    assert math.isfinite(scored.score)
    assert scored.score >= 0


def test_weights_must_be_finite_and_non_negative() -> None:
    with pytest.raises(ValueError):
        ScoringWeights(preference=-1.0)
    with pytest.raises(ValueError):
        ScoringWeights(nutrition=float("inf"))


def test_score_pool_preserves_order() -> None:
    scorer = Scorer(weights=ScoringWeights())
    items = [make_item("b"), make_item("a"), make_item("c")]

    scored = scorer.score_pool(items, _context())

    assert [candidate.item.id for candidate in scored] == ["b", "a", "c"]


def test_freshness_is_neutral_for_naive_timestamps() -> None:
    naive = make_item("a", updated_at=datetime(2026, 10, 1, 12, 0))

    assert freshness_score(naive, NOW, 30.0) == 0.5
