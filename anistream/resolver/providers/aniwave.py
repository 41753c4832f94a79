"""
AniWave client (scraped).

Episodes come from the site's AJAX listing when the watch URL carries an
internal id; the static watch page is scraped when that listing fails or
comes back empty.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from .. import diagnostics
from ..errors import MalformedDocument, TransportError
from ..extractor import Selector
from ..models import EpisodeDescriptor, FailureKind
from .scraped import HtmlScrapedProvider, parse_number

logger = logging.getLogger(__name__)

ACCEPT_AJAX = "application/json, text/javascript, */*; q=0.01"

_WATCH_ID = re.compile(r"/watch/[a-z0-9-]+\.(\w+)", re.IGNORECASE)
_EPISODE_TITLE = re.compile(r"episode\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")
_EPISODE_HREF = re.compile(r"/ep-(\d+(?:\.\d+)?)", re.IGNORECASE)


class AniWaveProvider(HtmlScrapedProvider):
    search_path = "filter"
    search_param = "keyword"
    search_rows = ".film_list-wrap .flw-item .film-name a"
    episode_rows = (
        '.episodes-list a, #episodes-list a, div.server[data-server-id="1"] ul.episodes a'
    )
    ajax_episode_rows = ".episodes li a, ul.episodes a"
    episode_fields = {
        "href": Selector("", "href"),
        "number": Selector("", "data-num"),
        "title": Selector("", "title"),
        "num": Selector(".num"),
        "text": Selector(""),
    }
    entry_selectors = (
        Selector("#player iframe", "src"),
        Selector(".watch-video iframe", "src"),
        Selector("#iframe-embed", "src"),
    )

    def episode_number(self, row: dict) -> Optional[float]:
        for value, pattern in (
            (row.get("number"), None),
            (row.get("title"), _EPISODE_TITLE),
            (row.get("num"), None),
            (row.get("text"), _LEADING_NUMBER),
            (row.get("href"), _EPISODE_HREF),
        ):
            number = parse_number(value) if pattern is None else parse_number(value, pattern=pattern)
            if number is not None:
                return number
        return None

    async def _list_episodes(self, external_id: str) -> List[EpisodeDescriptor]:
        detail_url = self.absolute(external_id)
        match = _WATCH_ID.search(detail_url)
        if match is None:
            logger.info("[%s] No internal id in %s, scraping the watch page", self.id, detail_url)
        else:
            try:
                episodes = await self._list_episodes_ajax(match.group(1), detail_url)
            except TransportError as exc:
                logger.warning("[%s] AJAX episode list failed, scraping the watch page: %s", self.id, exc)
                diagnostics.record(exc.kind, f"episode ajax: {exc}", exc.status_code)
            except MalformedDocument as exc:
                logger.warning("[%s] AJAX episode list was unusable: %s", self.id, exc)
                diagnostics.record(FailureKind.TRANSPORT_FAILURE, f"episode ajax: {exc}")
            else:
                if episodes:
                    return episodes
                logger.info("[%s] AJAX episode list was empty, scraping the watch page", self.id)

        episodes = await super()._list_episodes(external_id)
        if not episodes:
            diagnostics.record(FailureKind.EPISODE_NOT_FOUND, f"No episode links on {detail_url}")
        return episodes

    async def _list_episodes_ajax(self, internal_id: str, detail_url: str) -> List[EpisodeDescriptor]:
        payload = await self.fetcher.get_json(
            f"{self.base_url}/ajax/episode/list/{internal_id}",
            accept=ACCEPT_AJAX,
            referer=detail_url,
            headers={"X-Requested-With": "XMLHttpRequest"},
        )
        if not isinstance(payload, dict) or not payload.get("status"):
            return []
        fragment = payload.get("result")
        if not isinstance(fragment, str) or not fragment.strip():
            return []
        return self._episodes_from(fragment, self.ajax_episode_rows, detail_url)
