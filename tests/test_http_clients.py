"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from meal_decider.adapters.catalog_client import HttpxCatalogClient
from meal_decider.adapters.openai_ranking_client import OpenAIRankingClient
from meal_decider.adapters.remote_catalog_source import RemoteCatalogSource
from meal_decider.domain.errors import SourceError
from meal_decider.domain.food import FoodFilters, MealType
from meal_decider.services.cache import InMemoryCache

FOODS_PAYLOAD = {
    "foods": [
        {
            "id": "ramen",
            "name": "Ramen",
            "tags": ["asian", "warm"],
            "calories": 650,
            "price_low": 9,
            "price_high": 14,
            "meal_types": ["lunch", "dinner"],
            "cooking_time_minutes": 25,
            "allergens": ["gluten", "egg"],
            "updated_at": "2026-09-01T12:00:00+00:00",
        }
    ]
}


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)


@pytest.fixture
def catalog_requests() -> list[httpx.Request]:
    return []


def _catalog_client(handler) -> HttpxCatalogClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    return HttpxCatalogClient(
        base_url="https://catalog.test", http_client=async_client, api_key="key"
    )


def test_openai_ranking_client_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"ranked_ids": ["b", "a"], "reason": "Warm."}))
    client = OpenAIRankingClient(client=fake)

    result = asyncio.run(
        client.rank(
            model="gpt-5.2",
            store=False,
            schema={"type": "object"},
            prompt="Rank these",
        )
    )

    assert result == {"ranked_ids": ["b", "a"], "reason": "Warm."}
    payload = fake.responses.last_payload
    assert payload["text"]["format"]["name"] == "food_ranking"
    assert payload["store"] is False


def test_openai_ranking_client_rejects_empty_output() -> None:
    client = OpenAIRankingClient(client=_FakeOpenAI(""))

    with pytest.raises(RuntimeError):
        asyncio.run(
            client.rank(model="gpt-5.2", store=False, schema={}, prompt="Rank")
        )


def test_catalog_client_sends_query_and_auth(
    catalog_requests: list[httpx.Request],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        catalog_requests.append(request)
        return httpx.Response(200, json=FOODS_PAYLOAD)

    client = _catalog_client(handler)

    data = asyncio.run(client.list_foods({"meal_type": "lunch"}, timeout=1.0))

    assert data == FOODS_PAYLOAD
    [request] = catalog_requests
    assert request.url.path == "/foods"
    assert request.url.params["meal_type"] == "lunch"
    assert request.headers["Authorization"] == "Bearer key"


def test_remote_source_parses_and_caches(
    catalog_requests: list[httpx.Request],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        catalog_requests.append(request)
        return httpx.Response(200, json=FOODS_PAYLOAD)

    source = RemoteCatalogSource(client=_catalog_client(handler), cache=InMemoryCache())
    filters = FoodFilters(meal_type=MealType.LUNCH, max_calories=700)

    async def fetch_twice():  # type: ignore[no-untyped-def]
        first = await source.fetch(filters, timeout=1.0)
        second = await source.fetch(filters, timeout=1.0)
        return first, second

    first, second = asyncio.run(fetch_twice())

    assert first == second
    [item] = first
    assert item.id == "ramen"
    assert item.source == "remote"
    assert item.nutrition.calories == 650
    assert item.price.high == 14
    assert MealType.DINNER in item.meal_types
    assert len(catalog_requests) == 1
    assert catalog_requests[0].url.params["max_calories"] == "700"


def test_remote_source_retries_then_succeeds() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json=FOODS_PAYLOAD)

    source = RemoteCatalogSource(
        client=_catalog_client(handler),
        cache=InMemoryCache(),
        retry_delay_seconds=0,
    )

    items = asyncio.run(source.fetch(FoodFilters(), timeout=1.0))

    assert [item.id for item in items] == ["ramen"]
    assert len(attempts) == 2


def test_remote_source_raises_source_error_after_retries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    source = RemoteCatalogSource(
        client=_catalog_client(handler),
        cache=InMemoryCache(),
        retry_delay_seconds=0,
    )

    with pytest.raises(SourceError) as exc_info:
        asyncio.run(source.fetch(FoodFilters(), timeout=1.0))

    assert exc_info.value.source_id == "remote"
    assert "503" in str(exc_info.value)


def test_remote_source_rejects_malformed_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"foods": [{"name": "No id"}]})

    source = RemoteCatalogSource(client=_catalog_client(handler), cache=InMemoryCache())

    with pytest.raises(SourceError):
        asyncio.run(source.fetch(FoodFilters(), timeout=1.0))
