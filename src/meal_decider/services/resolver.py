"""Strategy registry and resolver."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from meal_decider.domain.errors import UnknownStrategyError
from meal_decider.domain.suggestions import StrategyType
from meal_decider.services.strategies import SelectionStrategy
from meal_decider.services.toggles import FeatureToggle, strategy_flag

_logger = logging.getLogger(__name__)


@dataclass
class StrategyRegistry:
    """Append-only mapping of strategy types to implementations."""

    _strategies: dict[StrategyType, SelectionStrategy] = field(default_factory=dict)

    def register(self, strategy: SelectionStrategy) -> None:
        """Add a strategy implementation; each type is registered once."""
        if strategy.strategy_type in self._strategies:
            raise ValueError(
                f"Strategy already registered: {strategy.strategy_type.value}"
            )
        self._strategies[strategy.strategy_type] = strategy

    def get(self, strategy_type: StrategyType) -> SelectionStrategy | None:
        """Return the implementation for a type, if registered."""
        return self._strategies.get(strategy_type)

    def types(self) -> list[StrategyType]:
        """Return registered strategy types."""
        return list(self._strategies)


@dataclass
class StrategyResolver:
    """Maps a requested strategy, cohort or default to an implementation."""

    registry: StrategyRegistry
    toggles: FeatureToggle
    default: StrategyType = StrategyType.RULE_BASED
    cohorts: Mapping[str, StrategyType] = field(default_factory=dict)

    def resolve(
        self, requested: str | StrategyType | None = None, cohort: str | None = None
    ) -> SelectionStrategy:
        """Return the strategy for the request, raising UnknownStrategyError."""
        if requested is None and cohort is not None:
            requested = self.cohorts.get(cohort)
        if requested is None:
            requested = self.default
        strategy_type = _parse(requested)
        if not self.toggles.is_enabled(strategy_flag(strategy_type.value)):
            raise UnknownStrategyError(f"{strategy_type.value} (disabled)")
        strategy = self.registry.get(strategy_type)
        if strategy is None:
            raise UnknownStrategyError(strategy_type.value)
        return strategy

    def resolve_or_default(
        self, requested: str | StrategyType | None = None, cohort: str | None = None
    ) -> SelectionStrategy:
        """Resolve a strategy, falling back to the default, then rule-based."""
        try:
            return self.resolve(requested, cohort)
        except UnknownStrategyError as exc:
            for fallback in (self.default, StrategyType.RULE_BASED):
                strategy = self.registry.get(fallback)
                if strategy is not None:
                    _logger.warning(
                        "Falling back to %s strategy: %s", fallback.value, exc
                    )
                    return strategy
            raise


def _parse(requested: str | StrategyType) -> StrategyType:
    if isinstance(requested, StrategyType):
        return requested
    try:
        return StrategyType(requested.strip().lower())
    except ValueError as exc:
        raise UnknownStrategyError(requested) from exc
