"""Supabase sink for pipeline traces."""

from dataclasses import dataclass

from supabase import Client

from meal_decider.domain.trace import PipelineTrace
from meal_decider.services.tracing import TraceSink, trace_summary


@dataclass
class SupabaseTraceRepository(TraceSink):
    """Persists traces so failures can be looked up by correlation id."""

    client: Client

    def log(self, trace: PipelineTrace) -> None:
        """Insert a trace row."""
        summary = trace_summary(trace)
        self.client.table("pipeline_traces").insert(
            {
                "id": summary["trace_id"],
                "started_at": summary["started_at"],
                "strategy": summary["strategy"],
                "failed_stage": summary["failed_stage"],
                "payload": summary,
            }
        ).execute()
