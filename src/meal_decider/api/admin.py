"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from meal_decider.services.tracing import trace_summary

if TYPE_CHECKING:
    from meal_decider.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/traces", dependencies=[Depends(require_admin)])
async def list_traces(request: Request, limit: int = 20) -> dict[str, object]:
    """Return the most recent pipeline traces."""
    container: AppContainer = request.app.state.container
    return {
        "traces": [
            trace_summary(trace) for trace in container.trace_store.recent(limit)
        ]
    }


@router.get("/traces/{trace_id}", dependencies=[Depends(require_admin)])
async def trace_detail(trace_id: UUID, request: Request) -> dict[str, object]:
    """Return a retained trace by correlation id."""
    container: AppContainer = request.app.state.container
    trace = container.trace_store.get(trace_id)
    if trace is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return trace_summary(trace)


@router.get("/sources", dependencies=[Depends(require_admin)])
async def list_sources(request: Request) -> dict[str, object]:
    """Return registered data sources and strategies."""
    container: AppContainer = request.app.state.container
    return {
        "sources": [
            {
                "source_id": source.source_id,
                "priority": source.priority,
                "requires_network": source.requires_network,
            }
            for source in container.source_registry.sources()
        ],
        "strategies": [
            strategy.value for strategy in container.strategy_registry.types()
        ],
    }
