"""Built-in catalog that works offline."""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from meal_decider.adapters.rows import item_from_row
from meal_decider.domain.food import FoodFilters, FoodItem

LOCAL_SOURCE_ID = "local"

DEFAULT_CATALOG: tuple[dict[str, object], ...] = (
    {
        "id": "oatmeal-berries",
        "name": "Oatmeal with berries",
        "tags": ["healthy", "vegetarian", "sweet"],
        "calories": 350,
        "protein_g": 10,
        "fat_g": 7,
        "carbs_g": 60,
        "price_low": 2,
        "price_high": 4,
        "meal_types": ["breakfast"],
        "cooking_time_minutes": 10,
        "allergens": ["gluten"],
    },
    {
        "id": "scrambled-eggs",
        "name": "Scrambled eggs on toast",
        "tags": ["vegetarian", "protein"],
        "calories": 420,
        "protein_g": 22,
        "fat_g": 24,
        "carbs_g": 28,
        "price_low": 2,
        "price_high": 5,
        "meal_types": ["breakfast", "lunch"],
        "cooking_time_minutes": 10,
        "allergens": ["egg", "gluten", "dairy"],
    },
    {
        "id": "greek-salad",
        "name": "Greek salad",
        "tags": ["healthy", "vegetarian", "fresh"],
        "calories": 320,
        "protein_g": 9,
        "fat_g": 24,
        "carbs_g": 14,
        "price_low": 6,
        "price_high": 10,
        "meal_types": ["lunch", "dinner"],
        "cooking_time_minutes": 10,
        "allergens": ["dairy"],
    },
    {
        "id": "chicken-rice-bowl",
        "name": "Chicken rice bowl",
        "tags": ["protein", "asian"],
        "calories": 610,
        "protein_g": 42,
        "fat_g": 14,
        "carbs_g": 72,
        "price_low": 8,
        "price_high": 13,
        "meal_types": ["lunch", "dinner"],
        "cooking_time_minutes": 25,
        "allergens": ["soy"],
    },
    {
        "id": "margherita-pizza",
        "name": "Margherita pizza",
        "tags": ["fast", "italian", "comfort"],
        "calories": 800,
        "protein_g": 32,
        "fat_g": 28,
        "carbs_g": 100,
        "price_low": 9,
        "price_high": 15,
        "meal_types": ["lunch", "dinner"],
        "cooking_time_minutes": 20,
        "allergens": ["gluten", "dairy"],
    },
    {
        "id": "lentil-soup",
        "name": "Lentil soup",
        "tags": ["healthy", "vegan", "comfort"],
        "calories": 380,
        "protein_g": 18,
        "fat_g": 6,
        "carbs_g": 58,
        "price_low": 3,
        "price_high": 6,
        "meal_types": ["lunch", "dinner"],
        "cooking_time_minutes": 40,
        "allergens": [],
    },
    {
        "id": "salmon-veggies",
        "name": "Baked salmon with vegetables",
        "tags": ["healthy", "protein", "fish"],
        "calories": 540,
        "protein_g": 38,
        "fat_g": 30,
        "carbs_g": 22,
        "price_low": 12,
        "price_high": 20,
        "meal_types": ["dinner"],
        "cooking_time_minutes": 30,
        "allergens": ["fish"],
    },
    {
        "id": "veggie-stir-fry",
        "name": "Vegetable stir-fry with noodles",
        "tags": ["vegan", "asian", "fast"],
        "calories": 520,
        "protein_g": 14,
        "fat_g": 16,
        "carbs_g": 80,
        "price_low": 5,
        "price_high": 9,
        "meal_types": ["lunch", "dinner"],
        "cooking_time_minutes": 15,
        "allergens": ["soy", "gluten"],
    },
    {
        "id": "beef-burger",
        "name": "Beef burger",
        "tags": ["fast", "comfort", "protein"],
        "calories": 750,
        "protein_g": 35,
        "fat_g": 40,
        "carbs_g": 55,
        "price_low": 8,
        "price_high": 14,
        "meal_types": ["lunch", "dinner"],
        "cooking_time_minutes": 15,
        "allergens": ["gluten", "dairy"],
    },
    {
        "id": "greek-yogurt-nuts",
        "name": "Greek yogurt with nuts",
        "tags": ["healthy", "vegetarian", "protein"],
        "calories": 260,
        "protein_g": 17,
        "fat_g": 14,
        "carbs_g": 16,
        "price_low": 2,
        "price_high": 4,
        "meal_types": ["breakfast", "snack"],
        "cooking_time_minutes": 2,
        "allergens": ["dairy", "nuts"],
    },
    {
        "id": "hummus-veggies",
        "name": "Hummus with vegetable sticks",
        "tags": ["healthy", "vegan", "fresh"],
        "calories": 220,
        "protein_g": 8,
        "fat_g": 12,
        "carbs_g": 20,
        "price_low": 2,
        "price_high": 5,
        "meal_types": ["snack"],
        "cooking_time_minutes": 5,
        "allergens": ["sesame"],
    },
)


@dataclass
class LocalCatalogSource:
    """In-process catalog; always available, preferred on duplicates."""

    items: tuple[FoodItem, ...]
    source_id: str = LOCAL_SOURCE_ID
    priority: int = 0
    requires_network: bool = False

    @classmethod
    def default(cls) -> "LocalCatalogSource":
        """Create a source backed by the built-in dish list."""
        return cls(items=_parse(DEFAULT_CATALOG, LOCAL_SOURCE_ID))

    @classmethod
    def from_file(cls, path: str | Path) -> "LocalCatalogSource":
        """Create a source from a JSON file holding a list of item rows."""
        rows = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(rows, list):
            raise ValueError(f"Catalog file must contain a list: {path}")
        return cls(items=_parse(rows, LOCAL_SOURCE_ID))

    def supports(self, filters: FoodFilters) -> bool:
        """The local catalog can serve any filter set."""
        return True

    async def fetch(self, filters: FoodFilters, *, timeout: float) -> list[FoodItem]:
        """Return the items that could match the requested meal type."""
        if filters.meal_type is None:
            return list(self.items)
        return [item for item in self.items if filters.meal_type in item.meal_types]


def _parse(
    rows: Iterable[dict[str, object]], source_id: str
) -> tuple[FoodItem, ...]:
    return tuple(item_from_row(dict(row), source=source_id) for row in rows)
