"""
Provider client contract.

Each provider exposes three lookups: title search, episode listing and entry
point discovery. Public methods never raise for expected failures. They
record a diagnostic note, log it and return an empty list so the
orchestrator can move on to the next provider.
"""
from __future__ import annotations

import abc
import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar
from urllib.parse import urljoin

from ...settings import ProviderConfig
from .. import diagnostics
from ..errors import MalformedDocument, TransportError
from ..http import HttpFetcher
from ..matching import DEFAULT_THRESHOLD, is_accepted, title_confidence
from ..models import (
    EntryKind,
    EntryPoint,
    EpisodeDescriptor,
    FailureKind,
    ProviderDescriptor,
    ProviderKind,
    SearchResult,
)
from ..quality import is_media_url

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProviderClient(abc.ABC):
    """Base class for a single content provider."""

    kind: ProviderKind = ProviderKind.HTML_SCRAPED
    search_tiers: int = 1

    def __init__(
        self,
        config: ProviderConfig,
        fetcher: HttpFetcher,
        *,
        match_threshold: float = DEFAULT_THRESHOLD,
        call_timeout: Optional[float] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.base_url = config.base_url.rstrip("/")
        self.match_threshold = match_threshold
        self.call_timeout = call_timeout if call_timeout is not None else fetcher.timeout
        self.descriptor = ProviderDescriptor(
            id=config.id,
            priority=config.priority,
            kind=ProviderKind(config.kind),
        )

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def priority(self) -> int:
        return self.config.priority

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} priority={self.priority}>"

    # Public API -----------------------------------------------------------

    async def search(self, title: str) -> List[SearchResult]:
        """Return matches at or above the confidence threshold, best first."""

        candidates = await self._guard(
            "search", self._search(title), timeout=self.call_timeout * self.search_tiers
        )
        accepted = [item for item in candidates if is_accepted(item.confidence, self.match_threshold)]
        if candidates and not accepted:
            best = max(candidates, key=lambda item: item.confidence)
            detail = (
                f"Best candidate '{best.matched_title}' scored {best.confidence:.2f}, "
                f"below {self.match_threshold:.2f}"
            )
            logger.info("[%s] %s", self.id, detail)
            diagnostics.record(FailureKind.NO_TITLE_MATCH, detail)
        return sorted(accepted, key=lambda item: item.confidence, reverse=True)

    async def list_episodes(self, external_id: str) -> List[EpisodeDescriptor]:
        episodes = await self._guard("list_episodes", self._list_episodes(external_id))
        return sorted(episodes, key=lambda item: item.number)

    async def get_entry_point(self, external_id: str, episode_id: str) -> List[EntryPoint]:
        return await self._guard("get_entry_point", self._get_entry_point(external_id, episode_id))

    # Provider-specific hooks ----------------------------------------------

    @abc.abstractmethod
    async def _search(self, title: str) -> List[SearchResult]:
        ...

    @abc.abstractmethod
    async def _list_episodes(self, external_id: str) -> List[EpisodeDescriptor]:
        ...

    @abc.abstractmethod
    async def _get_entry_point(self, external_id: str, episode_id: str) -> List[EntryPoint]:
        ...

    # Helpers ----------------------------------------------------------------

    async def _guard(
        self, operation: str, call: Awaitable[List[T]], *, timeout: Optional[float] = None
    ) -> List[T]:
        limit = timeout if timeout is not None else self.call_timeout
        try:
            return await asyncio.wait_for(call, timeout=limit)
        except asyncio.TimeoutError:
            detail = f"{operation} timed out after {limit:g}s"
            logger.warning("[%s] %s", self.id, detail)
            diagnostics.record(FailureKind.TIMEOUT, detail)
        except TransportError as exc:
            logger.warning("[%s] %s failed: %s", self.id, operation, exc)
            diagnostics.record(exc.kind, str(exc), exc.status_code)
        except MalformedDocument as exc:
            logger.warning("[%s] %s got an unusable document: %s", self.id, operation, exc)
            diagnostics.record(FailureKind.TRANSPORT_FAILURE, f"Malformed document: {exc}")
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("[%s] %s returned an unexpected payload: %r", self.id, operation, exc)
            diagnostics.record(FailureKind.TRANSPORT_FAILURE, f"Unexpected payload: {exc!r}")
        return []

    def _candidate(self, query: str, external_id: str, matched_title: str) -> SearchResult:
        return SearchResult(
            provider_id=self.id,
            external_id=external_id,
            matched_title=matched_title,
            confidence=title_confidence(query, matched_title),
        )

    def absolute(self, href: str, base: Optional[str] = None) -> str:
        if href.startswith("//"):
            return f"https:{href}"
        return urljoin(base or self.base_url + "/", href)

    def entry_for(self, url: str, *, label: Optional[str] = None, referer: Optional[str] = None) -> EntryPoint:
        kind = EntryKind.DIRECT_MEDIA if is_media_url(url) else EntryKind.EMBED_PAGE
        return EntryPoint(url=url, kind=kind, provider_id=self.id, label=label, referer=referer)
