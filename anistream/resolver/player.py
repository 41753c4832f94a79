"""
Embed/player page unwrapping.

A provider usually hands back the URL of a page that hosts a video player
rather than the media itself. ``PlayerResolver`` fetches that page and asks
each registered ``EmbedStrategy`` in turn whether it recognises the host and
can dig a manifest out of it. Supporting a new host means appending a
strategy, not editing the resolver.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

from . import diagnostics, extractor, scripts
from .errors import MalformedDocument, TransportError
from .hls import parse_master_playlist
from .http import ACCEPT_JSON, HttpFetcher
from .models import EntryKind, EntryPoint, StreamSource
from .quality import (
    DEFAULT_LABEL,
    DIRECT_LABEL,
    UNRESOLVED_LABEL,
    label_from_resolution,
    label_from_url,
    make_source,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbedPage:
    """A fetched player page handed to strategies."""

    url: str
    html: str
    label: Optional[str] = None
    referer: Optional[str] = None


def _source_label(page: EmbedPage, url: str, hinted: Optional[str] = None) -> str:
    return hinted or page.label or label_from_url(url) or DEFAULT_LABEL


def _absolute(page: EmbedPage, url: str) -> str:
    if url.startswith("//"):
        return f"{urlparse(page.url).scheme or 'https'}:{url}"
    return urljoin(page.url, url)


class EmbedStrategy:
    """Recognises one family of embed hosts and extracts their media URLs."""

    name: str = "base"
    hosts: Sequence[str] = ()

    def matches(self, url: str) -> bool:
        hostname = (urlparse(url).hostname or "").lower()
        return any(host in hostname for host in self.hosts)

    async def extract(self, page: EmbedPage, fetcher: HttpFetcher) -> List[StreamSource]:
        raise NotImplementedError


class PackedScriptStrategy(EmbedStrategy):
    """Kwik-style players: a packed script assigning the manifest to ``source``."""

    name = "packed-script"
    hosts = ("kwik.", "kwik-")

    async def extract(self, page: EmbedPage, fetcher: HttpFetcher) -> List[StreamSource]:
        texts = []
        for script in extractor.script_texts(page.html):
            unpacked = scripts.unpack(script)
            if unpacked:
                texts.append(unpacked)
        return [
            make_source(_absolute(page, url), _source_label(page, url, label))
            for url, label in scripts.find_media(texts)
        ]


class ScriptSourcesStrategy(EmbedStrategy):
    """JW Player style hosts that declare ``sources: [{file: ...}]`` inline."""

    name = "script-sources"
    hosts = (
        "vidstream",
        "gogo",
        "embtaku",
        "mp4upload",
        "filemoon",
        "kerapoxy",
        "streamwish",
    )

    async def extract(self, page: EmbedPage, fetcher: HttpFetcher) -> List[StreamSource]:
        texts = scripts.expand_scripts(extractor.script_texts(page.html))
        return [
            make_source(_absolute(page, url), _source_label(page, url, label))
            for url, label in scripts.find_media(texts)
        ]


class SourceEndpointStrategy(EmbedStrategy):
    """Hosts exposing the player's sources as JSON under ``<embed>/source``."""

    name = "source-endpoint"
    hosts = ("vidplay", "mcloud", "vizcloud")

    @staticmethod
    def source_url(embed_url: str) -> str:
        parsed = urlparse(embed_url)
        path = parsed.path.rstrip("/") + "/source"
        return parsed._replace(path=path, fragment="").geturl()

    async def extract(self, page: EmbedPage, fetcher: HttpFetcher) -> List[StreamSource]:
        payload = await fetcher.get_json(
            self.source_url(page.url), accept=ACCEPT_JSON, referer=page.url
        )
        if isinstance(payload, dict) and isinstance(payload.get("result"), dict):
            payload = payload["result"]
        raw_sources = payload.get("sources") if isinstance(payload, dict) else None
        if not isinstance(raw_sources, list):
            return []

        found: List[StreamSource] = []
        for item in raw_sources:
            if not isinstance(item, dict):
                continue
            url = item.get("file") or item.get("url")
            if not isinstance(url, str) or not url:
                continue
            label = item.get("label") if isinstance(item.get("label"), str) else None
            found.append(make_source(_absolute(page, url), _source_label(page, url, label)))
        return found


DEFAULT_STRATEGIES: tuple[EmbedStrategy, ...] = (
    PackedScriptStrategy(),
    ScriptSourcesStrategy(),
    SourceEndpointStrategy(),
)


class PlayerResolver:
    """Turns entry points into concrete stream sources."""

    def __init__(
        self,
        fetcher: HttpFetcher,
        *,
        strategies: Iterable[EmbedStrategy] = DEFAULT_STRATEGIES,
        timeout: float = 10.0,
        expand_hls_variants: bool = False,
    ) -> None:
        self._fetcher = fetcher
        self._strategies = list(strategies)
        self._timeout = timeout
        self._expand_hls_variants = expand_hls_variants

    @property
    def strategies(self) -> List[EmbedStrategy]:
        return list(self._strategies)

    async def resolve(self, entry: EntryPoint) -> List[StreamSource]:
        """Never raises; an empty list means the entry page was unreachable."""

        if entry.kind is EntryKind.DIRECT_MEDIA:
            label = label_from_url(entry.url) or entry.label or DIRECT_LABEL
            sources = [make_source(entry.url, label)]
        else:
            sources = await self._resolve_embed(entry)

        if self._expand_hls_variants and sources:
            sources = await self._expand(sources)
        return sources

    async def _resolve_embed(self, entry: EntryPoint) -> List[StreamSource]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout

        try:
            html = await self._fetcher.get_text(entry.url, referer=entry.referer, timeout=self._timeout)
        except TransportError as exc:
            logger.warning("[%s] Embed page unreachable: %s", entry.provider_id, exc)
            diagnostics.record(exc.kind, str(exc), exc.status_code)
            return []

        page = EmbedPage(url=entry.url, html=html, label=entry.label, referer=entry.referer)
        remaining = max(deadline - loop.time(), 0.001)
        try:
            sources = await asyncio.wait_for(self._unwrap(page), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning("[%s] Embed unwrapping timed out for %s", entry.provider_id, entry.url)
            sources = []

        if sources:
            return sources

        logger.warning(
            "[%s] Could not unwrap embed %s, returning it unresolved", entry.provider_id, entry.url
        )
        return [make_source(entry.url, UNRESOLVED_LABEL, is_hls=False)]

    async def _unwrap(self, page: EmbedPage) -> List[StreamSource]:
        for strategy in self._strategies:
            if not strategy.matches(page.url):
                continue
            try:
                sources = await strategy.extract(page, self._fetcher)
            except (TransportError, MalformedDocument, ValueError, KeyError, TypeError) as exc:
                logger.warning("Strategy %s failed for %s: %s", strategy.name, page.url, exc)
                continue
            if sources:
                logger.info("Strategy %s resolved %d source(s) from %s", strategy.name, len(sources), page.url)
                return sources
        return []

    async def _expand(self, sources: List[StreamSource]) -> List[StreamSource]:
        expanded: List[StreamSource] = []
        for source in sources:
            if not source.is_hls or source.quality_rank > 0:
                expanded.append(source)
                continue
            try:
                content = await self._fetcher.get_text(
                    source.url, accept="application/vnd.apple.mpegurl", timeout=self._timeout
                )
            except TransportError as exc:
                logger.info("Keeping master playlist %s unexpanded: %s", source.url, exc)
                expanded.append(source)
                continue

            variants = parse_master_playlist(source.url, content)
            if not variants:
                expanded.append(source)
                continue
            for variant in variants:
                label = (
                    label_from_resolution(variant.resolution)
                    or variant.name
                    or label_from_url(variant.url)
                    or source.quality_label
                )
                expanded.append(make_source(variant.url, label, is_hls=True))
        return expanded
