"""Shared state container for the resolver API."""
from __future__ import annotations

from dataclasses import dataclass

import httpx

from ..resolver import ResolutionService, build_service
from ..resolver.http import create_http_client
from ..settings import ResolverSettings


@dataclass(slots=True)
class AppState:
    """Encapsulates the long-lived objects shared across routers."""

    settings: ResolverSettings
    http_client: httpx.AsyncClient
    resolution_service: ResolutionService

    def __init__(
        self,
        settings: ResolverSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.http_client = create_http_client(settings, transport=transport)
        self.resolution_service = build_service(settings, self.http_client)

    async def close(self) -> None:
        """Release outbound connections and the cache backend."""

        await self.resolution_service.cache.close()
        await self.http_client.aclose()
