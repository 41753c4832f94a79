"""AnimeSuge client (scraped)."""
from __future__ import annotations

import re
from typing import Optional

from ..extractor import Selector
from .scraped import HtmlScrapedProvider, parse_number

_EPISODE_TITLE = re.compile(r"episode\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_EPISODE_HREF = re.compile(r"-ep-(\d+(?:\.\d+)?)", re.IGNORECASE)


class AnimeSugeProvider(HtmlScrapedProvider):
    search_path = "filter"
    search_param = "keyword"
    search_rows = ".flw-item .film-name a"
    episode_rows = ".episodes-list .nav-link, .ss-list a"
    entry_selectors = (
        Selector(".play-video iframe", "src"),
        Selector("#player iframe", "src"),
        Selector("iframe#frame", "src"),
        Selector("video source", "src"),
    )

    def episode_number(self, row: dict) -> Optional[float]:
        for value, pattern in (
            (row.get("number"), None),
            (row.get("title"), _EPISODE_TITLE),
            (row.get("href"), _EPISODE_HREF),
            (row.get("text"), None),
        ):
            number = parse_number(value) if pattern is None else parse_number(value, pattern=pattern)
            if number is not None:
                return number
        return None
