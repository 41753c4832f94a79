"""Shared behaviour for providers that are scraped page by page."""
from __future__ import annotations

import re
from typing import List, Optional, Sequence, Union

from bs4 import BeautifulSoup

from .. import extractor, scripts
from ..extractor import Selector
from ..http import ACCEPT_HTML
from ..models import EntryPoint, EpisodeDescriptor, ProviderKind, SearchResult
from .base import ProviderClient

_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def parse_number(*candidates: Optional[str], pattern: re.Pattern = _NUMBER) -> Optional[float]:
    """Return the first episode number found in the given strings."""

    for candidate in candidates:
        if not candidate:
            continue
        match = pattern.search(candidate)
        if match:
            return float(match.group(1))
    return None


class HtmlScrapedProvider(ProviderClient):
    """Search page -> detail page -> episode page, driven by class-level selectors.

    Subclasses fill in the URLs and CSS selectors and, where the site needs
    it, override ``episode_number``.
    """

    kind = ProviderKind.HTML_SCRAPED

    search_path: str = "search"
    search_param: str = "q"
    search_rows: str = ""
    episode_rows: str = ""
    episode_fields: extractor.SelectorSpec = {
        "href": Selector("", "href"),
        "number": Selector("", "data-number"),
        "title": Selector("", "title"),
        "text": Selector(""),
    }
    entry_selectors: Sequence[Selector] = ()

    def search_url(self) -> str:
        return f"{self.base_url}/{self.search_path}"

    def episode_number(self, row: dict) -> Optional[float]:
        return parse_number(row.get("number"), row.get("text"))

    async def _search(self, title: str) -> List[SearchResult]:
        html = await self.fetcher.get_text(
            self.search_url(), params={self.search_param: title}, accept=ACCEPT_HTML
        )
        rows = extractor.extract_rows(
            html,
            self.search_rows,
            {"href": Selector("", "href"), "title": Selector("", "title"), "text": Selector("")},
        )
        results: List[SearchResult] = []
        for row in rows:
            href = row.get("href")
            name = row.get("title") or row.get("text")
            if href and name:
                results.append(self._candidate(title, self.absolute(href), name))
        return results

    async def _list_episodes(self, external_id: str) -> List[EpisodeDescriptor]:
        detail_url = self.absolute(external_id)
        html = await self.fetcher.get_text(detail_url, accept=ACCEPT_HTML, referer=self.base_url)
        return self._episodes_from(html, self.episode_rows, detail_url)

    def _episodes_from(
        self, html: Union[str, BeautifulSoup], row_css: str, page_url: str
    ) -> List[EpisodeDescriptor]:
        """Turn episode links into descriptors, keeping the first link per number."""

        rows = extractor.extract_rows(html, row_css, self.episode_fields)
        episodes: List[EpisodeDescriptor] = []
        seen: set[float] = set()
        for row in rows:
            href = row.get("href")
            number = self.episode_number(row)
            if not href or number is None or number in seen:
                continue
            seen.add(number)
            episodes.append(
                EpisodeDescriptor(
                    provider_id=self.id,
                    episode_id=self.absolute(href, page_url),
                    number=number,
                    title=row.get("title") or row.get("text"),
                )
            )
        return episodes

    async def _get_entry_point(self, external_id: str, episode_id: str) -> List[EntryPoint]:
        episode_url = self.absolute(episode_id)
        html = await self.fetcher.get_text(episode_url, accept=ACCEPT_HTML, referer=self.absolute(external_id))
        soup = extractor.parse(html)

        entries: List[EntryPoint] = []
        seen: set[str] = set()
        for selector in self.entry_selectors:
            for row in extractor.extract_rows(soup, selector.css, {"url": Selector("", selector.attr)}):
                url = row.get("url")
                if not url or url.startswith(("javascript:", "#")):
                    continue
                url = self.absolute(url, episode_url)
                if url not in seen:
                    seen.add(url)
                    entries.append(self.entry_for(url, referer=episode_url))
            if entries:
                return entries

        return self._entries_from_scripts(soup, episode_url)

    def _entries_from_scripts(self, soup: BeautifulSoup, episode_url: str) -> List[EntryPoint]:
        texts = scripts.expand_scripts(extractor.script_texts(soup))
        return [
            self.entry_for(self.absolute(url, episode_url), label=label, referer=episode_url)
            for url, label in scripts.find_media(texts)
        ]
