"""Feature toggles consulted by the aggregator and the strategy resolver."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol


def source_flag(source_id: str) -> str:
    """Return the toggle name gating a data source."""
    return f"source:{source_id}"


def strategy_flag(strategy: str) -> str:
    """Return the toggle name gating a selection strategy."""
    return f"strategy:{strategy}"


class FeatureToggle(Protocol):
    """Read-only feature flag lookup."""

    def is_enabled(self, flag: str) -> bool:
        """Return True when the flag is on."""


@dataclass(frozen=True)
class StaticFeatureToggle(FeatureToggle):
    """Feature toggle backed by a fixed mapping; unknown flags use the default."""

    flags: Mapping[str, bool] = field(default_factory=dict)
    default: bool = True

    def is_enabled(self, flag: str) -> bool:
        """Return the configured state of a flag."""
        return self.flags.get(flag, self.default)
