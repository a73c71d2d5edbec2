"""HTTP food catalog API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class CatalogClient(Protocol):
    """Interface for a remote food catalog API."""

    async def list_foods(
        self, params: dict[str, str], timeout: float
    ) -> dict[str, object]:
        """Return raw catalog data for the query parameters."""


@dataclass
class HttpxCatalogClient(CatalogClient):
    """HTTPX-backed catalog client."""

    base_url: str
    http_client: httpx.AsyncClient
    api_key: str | None = None

    @classmethod
    def create(cls, base_url: str, api_key: str | None = None) -> "HttpxCatalogClient":
        """Create a catalog client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), api_key=api_key)

    async def list_foods(
        self, params: dict[str, str], timeout: float
    ) -> dict[str, object]:
        """Fetch foods matching the query parameters."""
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        response = await self.http_client.get(
            f"{self.base_url}/foods",
            params=params,
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
