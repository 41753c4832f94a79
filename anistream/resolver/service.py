"""Public façade of the resolution engine."""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .cache import NullResolutionCache, ResolutionCache, cache_key
from .catalog import CatalogClient
from .errors import InvalidRequest, UnknownProvider
from .models import EpisodeDescriptor, ResolutionResult
from .orchestrator import FallbackOrchestrator
from .providers.base import ProviderClient

logger = logging.getLogger(__name__)

EpisodeInput = Union[int, float, str]


def parse_episode_number(value: Optional[EpisodeInput]) -> float:
    """Validate an episode number; accepts numbers and numeric strings like "10.5"."""

    if value is None or isinstance(value, bool):
        raise InvalidRequest("Episode number is required")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidRequest("Episode number is required")
        try:
            number = float(text)
        except ValueError as exc:
            raise InvalidRequest(f"Episode number must be numeric, got '{value}'") from exc
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise InvalidRequest(f"Episode number must be numeric, got {type(value).__name__}")

    if not math.isfinite(number) or number < 0:
        raise InvalidRequest(f"Episode number must be a finite, non-negative number, got {value}")
    return number


_TRUE_FLAGS = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_FLAGS = frozenset({"0", "false", "f", "no", "n", "off", ""})


def parse_flag(value: Optional[Union[bool, str]], name: str) -> bool:
    """Validate a boolean query flag such as ``forceRefresh``; missing means False."""

    if value is None:
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    raise InvalidRequest(f"{name} must be a boolean, got '{value}'")


def parse_title(value: Optional[str]) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest("Title is required")
    return value.strip()


class ResolutionService:
    """Validates requests, consults the cache and delegates to the orchestrator."""

    def __init__(
        self,
        providers: Sequence[ProviderClient],
        orchestrator: FallbackOrchestrator,
        *,
        cache: Optional[ResolutionCache] = None,
        catalog: Optional[CatalogClient] = None,
    ) -> None:
        self._providers: Dict[str, ProviderClient] = {
            provider.id: provider for provider in sorted(providers, key=lambda item: item.priority)
        }
        self._orchestrator = orchestrator
        self._cache = cache or NullResolutionCache()
        self._catalog = catalog

    @property
    def providers(self) -> List[ProviderClient]:
        return list(self._providers.values())

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    def select_providers(self, preferred_provider: Optional[str]) -> List[ProviderClient]:
        if preferred_provider is None:
            return self.providers
        provider = self._providers.get(preferred_provider)
        if provider is None:
            raise UnknownProvider(f"Unknown provider '{preferred_provider}'")
        return [provider]

    async def resolve(
        self,
        title: Optional[str],
        episode_number: Optional[EpisodeInput],
        preferred_provider: Optional[str] = None,
        *,
        force_refresh: bool = False,
    ) -> ResolutionResult:
        title = parse_title(title)
        number = parse_episode_number(episode_number)
        preferred_provider = preferred_provider or None
        selected = self.select_providers(preferred_provider)

        key = cache_key(title, number, preferred_provider)
        if not force_refresh:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.info("Cache hit for '%s' episode %g (%s)", title, number, cached.provider_used)
                return cached

        logger.info(
            "Resolving '%s' episode %g via %s",
            title,
            number,
            ", ".join(provider.id for provider in selected),
        )
        result = await self._orchestrator.run(
            selected, title, number, explicit=preferred_provider is not None
        )
        await self._cache.set(key, result)
        return result

    async def title_for_catalog_id(self, catalog_id: Union[int, str]) -> str:
        if self._catalog is None:
            raise InvalidRequest("Catalog lookups are not configured")
        try:
            numeric_id = int(str(catalog_id).strip())
        except ValueError as exc:
            raise InvalidRequest(f"Catalog id must be an integer, got '{catalog_id}'") from exc
        if numeric_id <= 0:
            raise InvalidRequest("Catalog id must be positive")
        return await self._catalog.get_title(numeric_id)

    async def resolve_catalog_id(
        self,
        catalog_id: Union[int, str],
        episode_number: Optional[EpisodeInput],
        preferred_provider: Optional[str] = None,
        *,
        force_refresh: bool = False,
    ) -> ResolutionResult:
        number = parse_episode_number(episode_number)
        self.select_providers(preferred_provider or None)
        title = await self.title_for_catalog_id(catalog_id)
        return await self.resolve(title, number, preferred_provider, force_refresh=force_refresh)

    async def list_episodes(
        self, title: Optional[str], preferred_provider: Optional[str] = None
    ) -> Tuple[str, List[EpisodeDescriptor]]:
        title = parse_title(title)
        preferred_provider = preferred_provider or None
        selected = self.select_providers(preferred_provider)
        return await self._orchestrator.list_episodes(
            selected, title, explicit=preferred_provider is not None
        )
