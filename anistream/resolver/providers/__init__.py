"""Provider client implementations and the registry builder."""
from __future__ import annotations

from typing import Dict, List, Type

from ...settings import ResolverSettings
from ..http import HttpFetcher
from .animedao import AnimeDaoProvider
from .animepahe import AnimePaheProvider
from .animesuge import AnimeSugeProvider
from .aniwave import AniWaveProvider
from .base import ProviderClient
from .scraped import HtmlScrapedProvider

PROVIDER_CLASSES: Dict[str, Type[ProviderClient]] = {
    "animepahe": AnimePaheProvider,
    "animesuge": AnimeSugeProvider,
    "aniwave": AniWaveProvider,
    "animedao": AnimeDaoProvider,
}


def build_providers(settings: ResolverSettings, fetcher: HttpFetcher) -> List[ProviderClient]:
    """Instantiate every enabled provider in ascending priority order."""

    providers: List[ProviderClient] = []
    for config in sorted(settings.providers, key=lambda item: item.priority):
        if not config.enabled:
            continue
        provider_cls = PROVIDER_CLASSES.get(config.id)
        if provider_cls is None:
            raise ValueError(f"No client implementation for provider '{config.id}'")
        providers.append(
            provider_cls(
                config,
                fetcher,
                match_threshold=settings.match_threshold,
                call_timeout=settings.provider_call_timeout,
            )
        )
    return providers


__all__ = [
    "AnimeDaoProvider",
    "AnimePaheProvider",
    "AnimeSugeProvider",
    "AniWaveProvider",
    "HtmlScrapedProvider",
    "PROVIDER_CLASSES",
    "ProviderClient",
    "build_providers",
]
