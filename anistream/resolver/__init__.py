"""Anime episode stream resolution engine."""
from __future__ import annotations

from typing import Optional

import httpx

from ..settings import ResolverSettings
from .cache import ResolutionCache, create_cache
from .catalog import CatalogClient
from .errors import (
    AllProvidersExhausted,
    CatalogLookupError,
    InvalidRequest,
    MalformedDocument,
    ProviderUnavailable,
    ResolutionError,
    UnknownProvider,
)
from .http import HttpFetcher
from .models import ResolutionResult, StreamSource
from .orchestrator import FallbackOrchestrator
from .player import PlayerResolver
from .providers import build_providers
from .service import ResolutionService


def build_service(
    settings: ResolverSettings,
    client: httpx.AsyncClient,
    *,
    cache: Optional[ResolutionCache] = None,
) -> ResolutionService:
    """Wire providers, player, orchestrator, cache and catalog from settings."""

    fetcher = HttpFetcher(
        client,
        user_agent=settings.user_agent,
        timeout=settings.provider_call_timeout,
        retries=settings.http_retries,
        retry_backoff=settings.http_retry_backoff,
    )
    player = PlayerResolver(
        fetcher,
        timeout=settings.player_timeout,
        expand_hls_variants=settings.expand_hls_variants,
    )
    orchestrator = FallbackOrchestrator(player, attempt_timeout=settings.provider_attempt_timeout)
    return ResolutionService(
        build_providers(settings, fetcher),
        orchestrator,
        cache=cache if cache is not None else create_cache(settings),
        catalog=CatalogClient(
            fetcher,
            base_url=settings.catalog_base_url,
            max_entries=settings.cache_max_entries,
        ),
    )


__all__ = [
    "AllProvidersExhausted",
    "CatalogLookupError",
    "InvalidRequest",
    "MalformedDocument",
    "ProviderUnavailable",
    "ResolutionError",
    "ResolutionResult",
    "ResolutionService",
    "StreamSource",
    "UnknownProvider",
    "build_service",
]
