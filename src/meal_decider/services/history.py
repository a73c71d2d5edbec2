"""Decision history service."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from meal_decider.domain.food import FoodItem
from meal_decider.domain.suggestions import DecisionAction, DecisionLog, FoodSuggestion


class HistoryRepository(Protocol):
    """Persistence interface for decision logs."""

    def create_decision(self, user_id: UUID, log: DecisionLog) -> None:
        """Persist a decision log."""

    def list_recent_decisions(self, user_id: UUID, limit: int) -> list[DecisionLog]:
        """Return decision logs newest first."""


@dataclass
class HistoryService:
    """Records decisions and exposes them to context builders and observers."""

    repository: HistoryRepository
    poll_interval_seconds: float = 2.0

    def log_decision(
        self, user_id: UUID, suggestion: FoodSuggestion, action: DecisionAction
    ) -> DecisionLog:
        """Persist what the user did with a suggestion."""
        log = DecisionLog(
            suggestion=suggestion,
            action=action,
            decided_at=datetime.now(tz=UTC),
        )
        self.repository.create_decision(user_id, log)
        return log

    def list_history(self, user_id: UUID, limit: int = 20) -> list[DecisionLog]:
        """Return recent decisions, newest first."""
        return self.repository.list_recent_decisions(user_id, limit)

    def recent_items(self, user_id: UUID, window: int) -> tuple[FoodItem, ...]:
        """Return items of the latest decisions, most recent first."""
        logs = self.repository.list_recent_decisions(user_id, window)
        return tuple(log.suggestion.item for log in logs)

    async def observe_history(
        self, user_id: UUID, limit: int
    ) -> AsyncIterator[list[DecisionLog]]:
        """Yield history snapshots: the current one, then one per change.

        Each element is the full newest-first list of up to ``limit`` logs.
        The stream is endless; the caller stops it by closing the iterator.
        """
        previous: list[DecisionLog] | None = None
        while True:
            current = self.repository.list_recent_decisions(user_id, limit)
            if current != previous:
                previous = current
                yield current
            await asyncio.sleep(self.poll_interval_seconds)
