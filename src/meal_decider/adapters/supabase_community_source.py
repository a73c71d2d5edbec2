"""Data source backed by the community-contributed foods table."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from meal_decider.adapters.rows import item_from_row
from meal_decider.domain.errors import SourceError
from meal_decider.domain.food import FoodFilters, FoodItem

COMMUNITY_SOURCE_ID = "community"

_COLUMNS = (
    "id, name, tags, calories, protein_g, fat_g, carbs_g, price_low, price_high, "
    "meal_types, cooking_time_minutes, allergens, updated_at"
)


@dataclass
class CommunityCatalogSource:
    """Supabase community catalog.

    Community entries carry unverified allergen data, so runs with allergy
    constraints skip this source entirely.
    """

    client: Client
    source_id: str = COMMUNITY_SOURCE_ID
    priority: int = 20
    requires_network: bool = True
    limit: int = 200

    def supports(self, filters: FoodFilters) -> bool:
        """Return False when the run must respect allergies."""
        return not filters.allergies

    async def fetch(self, filters: FoodFilters, *, timeout: float) -> list[FoodItem]:
        """Query approved community foods without blocking the event loop."""
        try:
            rows = await asyncio.wait_for(
                asyncio.to_thread(self._select, filters), timeout=timeout
            )
            return [item_from_row(row, source=self.source_id) for row in rows]
        except Exception as exc:
            raise SourceError(self.source_id, str(exc)) from exc

    def _select(self, filters: FoodFilters) -> list[dict[str, object]]:
        query = (
            self.client.table("community_foods")
            .select(_COLUMNS)
            .eq("approved", True)
        )
        if filters.meal_type is not None:
            query = query.contains("meal_types", [filters.meal_type.value])
        if filters.max_calories is not None:
            query = query.lte("calories", filters.max_calories)
        response = query.limit(self.limit).execute()
        return response.data or []
