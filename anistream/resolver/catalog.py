"""Read-only metadata catalog lookups (Jikan / MyAnimeList ids)."""
from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from .errors import CatalogLookupError, TransportError
from .http import ACCEPT_JSON, HttpFetcher

logger = logging.getLogger(__name__)


class CatalogClient:
    """Maps a numeric catalog id to the title used for provider searches.

    Titles are remembered for ``ttl_seconds``; at most ``max_entries`` are
    kept, oldest evicted first.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        *,
        base_url: str,
        ttl_seconds: float = 3600.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._titles: "OrderedDict[int, Tuple[float, str]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._titles)

    async def get_title(self, catalog_id: int) -> str:
        cached = self._cached(catalog_id)
        if cached is not None:
            return cached

        url = f"{self._base_url}/anime/{catalog_id}"
        try:
            payload = await self._fetcher.get_json(url, accept=ACCEPT_JSON)
        except TransportError as exc:
            if exc.status_code == 404:
                raise CatalogLookupError(f"Catalog id {catalog_id} not found", not_found=True) from exc
            logger.warning("Catalog lookup for %s failed: %s", catalog_id, exc)
            raise CatalogLookupError(f"Catalog unavailable: {exc}") from exc

        title = _title_from_payload(payload)
        if not title:
            raise CatalogLookupError(f"Catalog id {catalog_id} has no title", not_found=True)
        self._remember(catalog_id, title)
        return title

    def _cached(self, catalog_id: int) -> Optional[str]:
        entry = self._titles.get(catalog_id)
        if entry is None:
            return None
        expires_at, title = entry
        if expires_at <= self._clock():
            self._titles.pop(catalog_id, None)
            return None
        return title

    def _remember(self, catalog_id: int, title: str) -> None:
        self._titles.pop(catalog_id, None)
        self._titles[catalog_id] = (self._clock() + self._ttl, title)
        while len(self._titles) > self._max_entries:
            self._titles.popitem(last=False)


def _title_from_payload(payload: object) -> Optional[str]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return None
    title = data.get("title") or data.get("title_english")
    return str(title).strip() if title else None
