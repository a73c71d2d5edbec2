"""User preference and favorites service."""

from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from meal_decider.domain.food import UserPreferences


class PreferenceRepository(Protocol):
    """Persistence interface for user preferences."""

    def get_preferences(self, user_id: UUID) -> UserPreferences | None:
        """Return stored preferences, if any."""

    def save_preferences(self, user_id: UUID, preferences: UserPreferences) -> None:
        """Create or replace a user's preferences."""


@dataclass
class PreferenceService:
    """Service for reading and updating preferences."""

    repository: PreferenceRepository

    def get_preferences(self, user_id: UUID) -> UserPreferences:
        """Return the user's preferences, or empty defaults."""
        return self.repository.get_preferences(user_id) or UserPreferences()

    def update_preferences(self, user_id: UUID, preferences: UserPreferences) -> None:
        """Persist a full preferences snapshot."""
        self.repository.save_preferences(user_id, preferences)

    def add_favorite(self, user_id: UUID, item_id: str) -> UserPreferences:
        """Mark an item as a favorite and return the new preferences."""
        current = self.get_preferences(user_id)
        if item_id in current.favorite_item_ids:
            return current
        updated = replace(
            current, favorite_item_ids=current.favorite_item_ids | {item_id}
        )
        self.repository.save_preferences(user_id, updated)
        return updated

    def remove_favorite(self, user_id: UUID, item_id: str) -> UserPreferences:
        """Unmark a favorite and return the new preferences."""
        current = self.get_preferences(user_id)
        if item_id not in current.favorite_item_ids:
            return current
        updated = replace(
            current, favorite_item_ids=current.favorite_item_ids - {item_id}
        )
        self.repository.save_preferences(user_id, updated)
        return updated
