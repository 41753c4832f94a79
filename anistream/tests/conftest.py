"""Shared fixtures: a fake upstream for httpx and scripted provider clients."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

import httpx
import pytest

from anistream.resolver.errors import TransportError
from anistream.resolver.http import HttpFetcher
from anistream.resolver.models import EntryPoint, EpisodeDescriptor, SearchResult
from anistream.resolver.providers.base import ProviderClient
from anistream.settings import ProviderConfig

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class FakeUpstream:
    """Routes requests by scheme, host and path to canned responses."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        *,
        status: int = 200,
        text: Optional[str] = None,
        json: Any = None,
        handler: Optional[Handler] = None,
    ) -> None:
        if handler is None:

            def handler(request: httpx.Request) -> httpx.Response:
                if json is not None:
                    return httpx.Response(status, json=json)
                return httpx.Response(status, text=text or "")

        self.routes[url] = handler

    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, text="not found")
        response = handler(request)
        if asyncio.iscoroutine(response):
            response = await response
        return response


def make_fetcher(upstream: FakeUpstream, *, timeout: float = 5.0) -> HttpFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return HttpFetcher(client, user_agent="anistream-tests", timeout=timeout)


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def fetcher(upstream: FakeUpstream) -> HttpFetcher:
    return make_fetcher(upstream)


class ScriptedProvider(ProviderClient):
    """Provider whose answers are fixed up front; records every call."""

    def __init__(
        self,
        provider_id: str,
        priority: int,
        fetcher: HttpFetcher,
        *,
        titles: Iterable[str] = (),
        episodes: Iterable[float] = (),
        entries: Iterable[str] = (),
        down: bool = False,
        search_delay: float = 0.0,
        calls: Optional[list[tuple[str, str]]] = None,
        call_timeout: Optional[float] = None,
    ) -> None:
        config = ProviderConfig(
            id=provider_id,
            priority=priority,
            kind="html",
            base_url=f"https://{provider_id.lower()}.test",
        )
        super().__init__(config, fetcher, call_timeout=call_timeout)
        self.titles = list(titles)
        self.episode_numbers = list(episodes)
        self.entry_urls = list(entries)
        self.down = down
        self.search_delay = search_delay
        self.calls = calls if calls is not None else []

    async def _search(self, title: str) -> list[SearchResult]:
        self.calls.append((self.id, "search"))
        if self.search_delay:
            await asyncio.sleep(self.search_delay)
        if self.down:
            raise TransportError(f"HTTP 503 from {self.base_url}", status_code=503)
        return [self._candidate(title, f"{self.id}-show", name) for name in self.titles]

    async def _list_episodes(self, external_id: str) -> list[EpisodeDescriptor]:
        self.calls.append((self.id, "list_episodes"))
        return [
            EpisodeDescriptor(provider_id=self.id, episode_id=f"ep-{number:g}", number=float(number))
            for number in self.episode_numbers
        ]

    async def _get_entry_point(self, external_id: str, episode_id: str) -> list[EntryPoint]:
        self.calls.append((self.id, "get_entry_point"))
        return [self.entry_for(url) for url in self.entry_urls]


@pytest.fixture()
def calls() -> list[tuple[str, str]]:
    return []
