"""
AnimePahe client.

Search goes through the site's JSON API first and falls back to scraping the
HTML search page when the API errors or finds nothing. Either path yields the
same opaque anime session id, which the release API and the play page accept.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, List, Optional

from .. import diagnostics, extractor
from ..errors import TransportError
from ..extractor import Selector
from ..http import ACCEPT_HTML, ACCEPT_JSON
from ..models import EntryPoint, EpisodeDescriptor, FailureKind, ProviderKind, SearchResult
from .base import ProviderClient

logger = logging.getLogger(__name__)

_ANIME_HREF = re.compile(r"/anime/([^/?#]+)")
MAX_RELEASE_PAGES = 40


def _episode_number(raw: Any) -> Optional[float]:
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        return None


class AnimePaheProvider(ProviderClient):
    kind = ProviderKind.API_BACKED
    # API tier, then HTML tier; each gets the full per-call budget.
    search_tiers = 2

    search_rows = ".search-results .hover > div > h5 > a, .search-results .hover h5 a"
    resolution_buttons = "#resolutionMenu button[data-src]"

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/api"

    async def _search(self, title: str) -> List[SearchResult]:
        try:
            results = await asyncio.wait_for(self._search_api(title), timeout=self.call_timeout)
        except asyncio.TimeoutError:
            detail = f"search api timed out after {self.call_timeout:g}s"
            logger.warning("[%s] %s, falling back to HTML", self.id, detail)
            diagnostics.record(FailureKind.TIMEOUT, detail)
            results = []
        except TransportError as exc:
            logger.warning("[%s] Search API failed, falling back to HTML: %s", self.id, exc)
            diagnostics.record(exc.kind, f"search api: {exc}", exc.status_code)
            results = []
        else:
            if not results:
                logger.info("[%s] Search API returned no matches, falling back to HTML", self.id)

        if results:
            return results
        results = await self._search_html(title)
        if not results:
            # the site answered; a miss here outranks an earlier API failure
            diagnostics.record(FailureKind.NO_TITLE_MATCH, f"HTML search found nothing for '{title}'")
        return results

    async def _search_api(self, title: str) -> List[SearchResult]:
        payload = await self.fetcher.get_json(
            self.api_url,
            params={"m": "search", "q": title},
            accept=ACCEPT_JSON,
            referer=self.base_url,
        )
        rows = payload.get("data") if isinstance(payload, dict) else None
        results: List[SearchResult] = []
        for row in rows or []:
            if not isinstance(row, dict):
                continue
            session = row.get("session")
            name = row.get("title")
            if session and name:
                results.append(self._candidate(title, str(session), str(name)))
        return results

    async def _search_html(self, title: str) -> List[SearchResult]:
        html = await self.fetcher.get_text(
            f"{self.base_url}/search", params={"q": title}, accept=ACCEPT_HTML
        )
        rows = extractor.extract_rows(
            html,
            self.search_rows,
            {"href": Selector("", "href"), "title": Selector("", "title"), "text": Selector("")},
        )
        results: List[SearchResult] = []
        seen: set[str] = set()
        for row in rows:
            match = _ANIME_HREF.search(row.get("href") or "")
            name = row.get("title") or row.get("text")
            if not match or not name or match.group(1) in seen:
                continue
            seen.add(match.group(1))
            results.append(self._candidate(title, match.group(1), name))
        return results

    async def _list_episodes(self, external_id: str) -> List[EpisodeDescriptor]:
        episodes: List[EpisodeDescriptor] = []
        page = 1
        last_page = 1
        while page <= min(last_page, MAX_RELEASE_PAGES):
            payload = await self.fetcher.get_json(
                self.api_url,
                params={"m": "release", "id": external_id, "sort": "episode_asc", "page": page},
                accept=ACCEPT_JSON,
                referer=f"{self.base_url}/anime/{external_id}",
            )
            if not isinstance(payload, dict):
                break
            for row in payload.get("data") or []:
                number = _episode_number(row.get("episode"))
                session = row.get("session")
                if number is None or not session:
                    continue
                episodes.append(
                    EpisodeDescriptor(
                        provider_id=self.id,
                        episode_id=str(session),
                        number=number,
                        title=row.get("title") or None,
                    )
                )
            last_page = int(payload.get("last_page") or 1)
            page += 1
        return episodes

    async def _get_entry_point(self, external_id: str, episode_id: str) -> List[EntryPoint]:
        play_url = f"{self.base_url}/play/{external_id}/{episode_id}"
        html = await self.fetcher.get_text(play_url, accept=ACCEPT_HTML, referer=self.base_url)
        rows = extractor.extract_rows(
            html,
            self.resolution_buttons,
            {
                "src": Selector("", "data-src"),
                "resolution": Selector("", "data-resolution"),
                "text": Selector(""),
            },
        )

        entries: List[EntryPoint] = []
        for row in rows:
            src = row.get("src")
            if not src:
                continue
            label = f"{row['resolution']}p" if row.get("resolution") else row.get("text")
            entries.append(self.entry_for(self.absolute(src), label=label, referer=play_url))
        return entries
