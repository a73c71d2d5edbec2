"""Tests for container wiring."""

import asyncio

from meal_decider.containers import build_container
from meal_decider.domain.suggestions import StrategyType


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.suggestion_service is not None
    assert [source.source_id for source in container.source_registry.sources()] == [
        "local",
        "community",
    ]
    assert StrategyType.MODEL_RANKED not in container.strategy_registry.types()
    asyncio.run(container.close_resources())


def test_build_container_adds_optional_integrations(settings) -> None:
    settings.remote_catalog_url = "https://catalog.test"
    settings.openai_api_key = "sk-test"

    container = build_container(settings)

    assert container.source_registry.priority_of("remote") == 10
    ranking = container.strategy_registry.get(StrategyType.MODEL_RANKED)
    assert ranking is not None
    assert ranking.fallback is container.strategy_registry.get(StrategyType.RULE_BASED)
    asyncio.run(container.close_resources())
