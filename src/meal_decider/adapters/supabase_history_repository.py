"""Supabase repository for decision history."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from meal_decider.adapters.rows import decision_from_row, suggestion_to_row
from meal_decider.domain.suggestions import DecisionLog
from meal_decider.services.history import HistoryRepository


@dataclass
class SupabaseHistoryRepository(HistoryRepository):
    """Supabase implementation for decision logs."""

    client: Client

    def create_decision(self, user_id: UUID, log: DecisionLog) -> None:
        """Insert a decision log row."""
        self.client.table("decision_logs").insert(
            {
                "user_id": str(user_id),
                "item_id": log.suggestion.item.id,
                "action": log.action.value,
                "suggestion": suggestion_to_row(log.suggestion),
                "decided_at": log.decided_at.isoformat(),
            }
        ).execute()

    def list_recent_decisions(self, user_id: UUID, limit: int) -> list[DecisionLog]:
        """Return the newest decision logs for a user."""
        response = (
            self.client.table("decision_logs")
            .select("suggestion, action, decided_at")
            .eq("user_id", str(user_id))
            .order("decided_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [decision_from_row(row) for row in response.data or []]
