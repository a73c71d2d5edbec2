"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from meal_decider.adapters.rows import preferences_to_row
from meal_decider.api.admin import router as admin_router
from meal_decider.api.models import (
    DecisionRequest,
    PreferencesPayload,
    SuggestionRequest,
)
from meal_decider.app_logging import configure_logging
from meal_decider.containers import AppContainer
from meal_decider.domain.errors import FilteredToEmptyError, PipelineError
from meal_decider.domain.suggestions import DecisionLog, FoodSuggestion


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(
        request: Request, exc: PipelineError
    ) -> JSONResponse:
        """Hide stage detail from users; the trace id locates the trace record.

        Filters that exclude every candidate are the caller's to relax (422);
        missing candidates or a failed pick mean the service cannot answer
        right now (503).
        """
        logger.info(
            "Suggestion failed at %s (trace %s): %s",
            exc.stage.value if exc.stage else "unknown",
            exc.trace_id,
            exc,
        )
        return JSONResponse(
            status_code=(
                status.HTTP_422_UNPROCESSABLE_ENTITY
                if isinstance(exc, FilteredToEmptyError)
                else status.HTTP_503_SERVICE_UNAVAILABLE
            ),
            content={
                "error": exc.user_message,
                "trace_id": str(exc.trace_id) if exc.trace_id else None,
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/users/{user_id}/suggestions")
    async def suggest(
        user_id: UUID, body: SuggestionRequest, request: Request
    ) -> dict[str, object]:
        """Run the pipeline for a user."""
        state_container: AppContainer = request.app.state.container
        run = await state_container.suggestion_service.suggest(
            user_id,
            body.filters.to_domain(),
            environment=body.environment_domain(),
            strategy=body.strategy,
            cohort=body.cohort,
        )
        return {
            "suggestion": _suggestion_payload(run.suggestion),
            "trace_id": str(run.trace_id),
        }

    @app.post("/users/{user_id}/decisions")
    async def log_decision(
        user_id: UUID, body: DecisionRequest, request: Request
    ) -> dict[str, object]:
        """Record what the user did with a suggestion."""
        state_container: AppContainer = request.app.state.container
        log = state_container.suggestion_service.record_decision(
            user_id, body.suggestion.to_domain(), body.action
        )
        return {"decision": _decision_payload(log)}

    @app.get("/users/{user_id}/history")
    async def history(
        user_id: UUID, request: Request, limit: int = 20
    ) -> dict[str, object]:
        """Return recent decisions, newest first."""
        state_container: AppContainer = request.app.state.container
        logs = state_container.history_service.list_history(user_id, limit)
        return {"history": [_decision_payload(log) for log in logs]}

    @app.get("/users/{user_id}/preferences")
    async def get_preferences(user_id: UUID, request: Request) -> dict[str, object]:
        """Return the stored preferences."""
        state_container: AppContainer = request.app.state.container
        preferences = state_container.preference_service.get_preferences(user_id)
        return {"preferences": preferences_to_row(preferences)}

    @app.put("/users/{user_id}/preferences")
    async def put_preferences(
        user_id: UUID, body: PreferencesPayload, request: Request
    ) -> dict[str, object]:
        """Replace the stored preferences."""
        state_container: AppContainer = request.app.state.container
        preferences = body.to_domain()
        state_container.preference_service.update_preferences(user_id, preferences)
        return {"preferences": preferences_to_row(preferences)}

    return app


def _suggestion_payload(suggestion: FoodSuggestion) -> dict[str, object]:
    item = suggestion.item
    return {
        "item": {
            "id": item.id,
            "name": item.name,
            "source": item.source,
            "tags": sorted(item.tags),
            "nutrition": (
                {
                    "calories": item.nutrition.calories,
                    "protein_g": item.nutrition.protein_g,
                    "fat_g": item.nutrition.fat_g,
                    "carbs_g": item.nutrition.carbs_g,
                }
                if item.nutrition
                else None
            ),
            "price": (
                {"low": item.price.low, "high": item.price.high} if item.price else None
            ),
            "meal_types": sorted(meal_type.value for meal_type in item.meal_types),
            "cooking_time_minutes": item.cooking_time_minutes,
            "allergens": sorted(item.allergens),
            "updated_at": item.updated_at.isoformat() if item.updated_at else None,
        },
        "source": suggestion.source,
        "strategy": suggestion.strategy.value,
        "score": suggestion.score,
        "reason": suggestion.reason,
    }


def _decision_payload(log: DecisionLog) -> dict[str, object]:
    return {
        "suggestion": _suggestion_payload(log.suggestion),
        "action": log.action.value,
        "decided_at": log.decided_at.isoformat(),
    }

