"""Supabase repository for user preferences."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_decider.adapters.rows import preferences_from_row, preferences_to_row
from meal_decider.domain.food import UserPreferences
from meal_decider.services.preferences import PreferenceRepository


@dataclass
class SupabasePreferenceRepository(PreferenceRepository):
    """Supabase implementation for user preferences."""

    client: Client

    def get_preferences(self, user_id: UUID) -> UserPreferences | None:
        """Return stored preferences for a user."""
        response = (
            self.client.table("user_preferences")
            .select(
                "liked_tags, disliked_tags, favorite_item_ids, calorie_target, "
                "allergies"
            )
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return preferences_from_row(response.data[0])

    def save_preferences(self, user_id: UUID, preferences: UserPreferences) -> None:
        """Upsert the user's preferences row."""
        self.client.table("user_preferences").upsert(
            {
                "user_id": str(user_id),
                **preferences_to_row(preferences),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()
