"""Data source backed by the remote catalog API."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from meal_decider.adapters.catalog_client import CatalogClient
from meal_decider.adapters.rows import item_from_row
from meal_decider.domain.errors import SourceError
from meal_decider.domain.food import FoodFilters, FoodItem
from meal_decider.services.cache import Cache

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

REMOTE_SOURCE_ID = "remote"

_logger = logging.getLogger(__name__)


@dataclass
class RemoteCatalogSource:
    """Remote catalog with response caching and a short retry."""

    client: CatalogClient
    cache: Cache
    source_id: str = REMOTE_SOURCE_ID
    priority: int = 10
    requires_network: bool = True
    cache_ttl_seconds: int = 300
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.2
    debug: bool = False

    def supports(self, filters: FoodFilters) -> bool:
        """The remote catalog accepts every filter set."""
        return True

    async def fetch(self, filters: FoodFilters, *, timeout: float) -> list[FoodItem]:
        """Fetch items, serving repeated queries from the cache."""
        params = _query_params(filters)
        query = "&".join(f"{key}={value}" for key, value in sorted(params.items()))
        cache_key = f"catalog:{query}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        try:
            payload = await self._call_with_retry(
                lambda: self.client.list_foods(params, timeout=timeout)
            )
            items = [
                item_from_row(row, source=self.source_id)
                for row in payload.get("foods", [])
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise SourceError(
                self.source_id, f"Malformed catalog payload: {exc}"
            ) from exc
        self.cache.set(cache_key, items, ttl_seconds=self.cache_ttl_seconds)
        if self.debug:
            _logger.info("Remote catalog: params=%s results=%s", params, len(items))
        return items

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]"
    ) -> dict[str, object]:
        """Call the catalog with a short retry, raising SourceError at the end."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                status_code = _status_code_from_exception(exc)
                if self.debug:
                    _logger.warning(
                        "Remote catalog failed (attempt %s/%s, status=%s): %s",
                        attempt,
                        self.retry_attempts + 1,
                        status_code,
                        exc,
                    )
                if attempt > self.retry_attempts:
                    raise SourceError(
                        self.source_id, f"status={status_code}: {exc}"
                    ) from exc
                await asyncio.sleep(self.retry_delay_seconds)


def _query_params(filters: FoodFilters) -> dict[str, str]:
    """Translate filters to catalog query parameters the API can pre-filter on."""
    params: dict[str, str] = {}
    if filters.meal_type is not None:
        params["meal_type"] = filters.meal_type.value
    if filters.max_calories is not None:
        params["max_calories"] = f"{filters.max_calories:g}"
    if filters.max_cooking_minutes is not None:
        params["max_cooking_minutes"] = str(filters.max_cooking_minutes)
    if filters.exclude_tags:
        params["exclude_tags"] = ",".join(sorted(filters.exclude_tags))
    return params


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
