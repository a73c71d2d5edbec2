"""Tests for concurrent source aggregation."""

import asyncio

import pytest

from meal_decider.domain.errors import SourceError
from meal_decider.domain.food import Environment, FoodFilters
from meal_decider.domain.trace import SourceStatus
from meal_decider.services.sources import (
    UNKNOWN_PRIORITY,
    SourceAggregator,
    SourceRegistry,
    merge_items,
)
from meal_decider.services.toggles import StaticFeatureToggle
from tests.fakes import FakeSource, make_item


def _aggregator(sources, flags=None) -> SourceAggregator:
    registry = SourceRegistry()
    for source in sources:
        registry.register(source)
    return SourceAggregator(registry=registry, toggles=StaticFeatureToggle(flags or {}))


def _aggregate(aggregator, environment=None, timeout=1.0):
    return asyncio.run(
        aggregator.aggregate(FoodFilters(), environment or Environment(), timeout)
    )


def _statuses(result) -> dict[str, SourceStatus]:
    return {outcome.source_id: outcome.status for outcome in result.outcomes}


def test_registry_orders_by_priority_and_rejects_duplicates() -> None:
    registry = SourceRegistry()
    registry.register(FakeSource("remote", 10))
    registry.register(FakeSource("local", 0))

    assert [source.source_id for source in registry.sources()] == ["local", "remote"]
    assert registry.priority_of("remote") == 10
    assert registry.priority_of("missing") == UNKNOWN_PRIORITY
    with pytest.raises(ValueError):
        registry.register(FakeSource("local", 5))


@pytest.mark.parametrize("local_delay,remote_delay", [(0.0, 0.05), (0.05, 0.0)])
def test_duplicates_keep_the_lowest_priority_copy(
    local_delay: float, remote_delay: float
) -> None:
    local = FakeSource(
        "local",
        0,
        [make_item("pizza", source="local", calories=800)],
        delay=local_delay,
    )
    remote = FakeSource(
        "remote",
        10,
        [make_item("pizza", source="remote", calories=650), make_item("soup")],
        delay=remote_delay,
    )

    result = _aggregate(_aggregator([remote, local]))

    pizza = next(item for item in result.items if item.id == "pizza")
    assert pizza.source == "local"
    assert pizza.nutrition.calories == 800
    assert sorted(item.id for item in result.items) == ["pizza", "soup"]
    assert result.fetched_count == 3


def test_merge_is_independent_of_completion_order() -> None:
    first = FakeSource("a", 5, [make_item("x", source="a"), make_item("y", source="a")])
    second = FakeSource(
        "b", 5, [make_item("x", source="b"), make_item("z", source="b")]
    )

    forward = merge_items([(first, first.items), (second, second.items)])
    backward = merge_items([(second, second.items), (first, first.items)])

    assert forward == backward
    assert [item.source for item in forward if item.id == "x"] == ["a"]


def test_unsupported_sources_are_never_fetched() -> None:
    skipped = FakeSource("picky", 0, [make_item("pizza")], supported=False)
    used = FakeSource("local", 1, [make_item("salad")])

    result = _aggregate(_aggregator([skipped, used]))

    assert skipped.calls == 0
    assert _statuses(result)["picky"] is SourceStatus.UNSUPPORTED
    assert [item.id for item in result.items] == ["salad"]


def test_failing_source_is_recorded_and_others_still_contribute() -> None:
    broken = FakeSource("remote", 10, error=SourceError("remote", "HTTP 503"))
    healthy = FakeSource("local", 0, [make_item("salad")])

    result = _aggregate(_aggregator([broken, healthy]))

    outcome = next(o for o in result.outcomes if o.source_id == "remote")
    assert outcome.status is SourceStatus.FAILED
    assert "HTTP 503" in outcome.error
    assert [item.id for item in result.items] == ["salad"]


def test_slow_source_times_out_and_is_cancelled() -> None:
    slow = FakeSource("remote", 10, [make_item("pizza")], delay=5.0)
    fast = FakeSource("local", 0, [make_item("salad")])

    result = _aggregate(_aggregator([slow, fast]), timeout=0.05)

    assert _statuses(result) == {
        "local": SourceStatus.OK,
        "remote": SourceStatus.TIMEOUT,
    }
    assert slow.cancelled
    assert [item.id for item in result.items] == ["salad"]


def test_offline_skips_network_sources() -> None:
    remote = FakeSource("remote", 10, [make_item("pizza")], requires_network=True)
    local = FakeSource("local", 0, [make_item("salad")])

    result = _aggregate(
        _aggregator([remote, local]), environment=Environment(is_online=False)
    )

    assert remote.calls == 0
    assert _statuses(result)["remote"] is SourceStatus.OFFLINE


def test_disabled_sources_are_skipped() -> None:
    remote = FakeSource("remote", 10, [make_item("pizza")])

    result = _aggregate(_aggregator([remote], flags={"source:remote": False}))

    assert remote.calls == 0
    assert result.items == []
    assert _statuses(result) == {"remote": SourceStatus.DISABLED}


def test_outcomes_follow_registry_order() -> None:
    sources = [
        FakeSource("c", 2, [make_item("one")]),
        FakeSource("a", 0, [make_item("two")], delay=0.02),
        FakeSource("b", 1, supported=False),
    ]

    result = _aggregate(_aggregator(sources))

    assert [outcome.source_id for outcome in result.outcomes] == ["a", "b", "c"]


def test_caller_cancellation_cancels_outstanding_fetches() -> None:
    slow = FakeSource("remote", 10, [make_item("pizza")], delay=5.0)
    aggregator = _aggregator([slow])

    async def run() -> None:
        task = asyncio.create_task(
            aggregator.aggregate(FoodFilters(), Environment(), 10.0)
        )
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())

    assert slow.cancelled
