"""Tests for the preference service."""

from uuid import UUID

from meal_decider.domain.food import UserPreferences
from meal_decider.services.preferences import PreferenceService
from tests.fakes import InMemoryPreferenceRepository


def test_missing_preferences_default_to_empty(user_id: UUID) -> None:
    service = PreferenceService(InMemoryPreferenceRepository())

    assert service.get_preferences(user_id) == UserPreferences()


def test_update_replaces_snapshot(user_id: UUID) -> None:
    service = PreferenceService(InMemoryPreferenceRepository())
    prefs = UserPreferences(liked_tags=frozenset({"spicy"}), calorie_target=600)

    service.update_preferences(user_id, prefs)

    assert service.get_preferences(user_id) == prefs


def test_favorites_can_be_added_and_removed(user_id: UUID) -> None:
    repository = InMemoryPreferenceRepository()
    service = PreferenceService(repository)
    service.update_preferences(
        user_id, UserPreferences(liked_tags=frozenset({"healthy"}))
    )

    added = service.add_favorite(user_id, "salad")
    again = service.add_favorite(user_id, "salad")
    removed = service.remove_favorite(user_id, "salad")

    assert added.favorite_item_ids == frozenset({"salad"})
    assert added.liked_tags == frozenset({"healthy"})
    assert again == added
    assert removed.favorite_item_ids == frozenset()
    assert repository.preferences[user_id] == removed
