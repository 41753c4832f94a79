"""AnimeDao client (scraped)."""
from __future__ import annotations

import re
from typing import Optional

from ..extractor import Selector
from .scraped import HtmlScrapedProvider, parse_number

_EPISODE_TEXT = re.compile(r"(?:episode|ep\.?)\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_EPISODE_HREF = re.compile(r"-episode-(\d+(?:[.-]\d+)?)", re.IGNORECASE)


class AnimeDaoProvider(HtmlScrapedProvider):
    search_path = "search/"
    search_param = "q"
    search_rows = ".anime_card h5 a"
    episode_rows = ".episode-list-item a, .ep-list a, #episode_related a"
    entry_selectors = (
        Selector("iframe[src]", "src"),
        Selector("video source", "src"),
        Selector(".anime_download a", "href"),
    )

    def episode_number(self, row: dict) -> Optional[float]:
        number = parse_number(row.get("text"), pattern=_EPISODE_TEXT)
        if number is not None:
            return number
        href = row.get("href") or ""
        match = _EPISODE_HREF.search(href)
        if match:
            # "-episode-10-5" is how the site spells 10.5
            return float(match.group(1).replace("-", "."))
        return parse_number(row.get("text"))
