"""Tests for the shared HTTP fetcher's retry behaviour."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from anistream.resolver.errors import TransportError
from anistream.resolver.http import HttpFetcher

from .conftest import FakeUpstream

URL = "https://upstream.test/page"


def _fetcher(upstream: FakeUpstream, *, retries: int, timeout: float = 5.0) -> HttpFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return HttpFetcher(
        client, user_agent="anistream-tests", timeout=timeout, retries=retries, retry_backoff=0.0
    )


def _sequence(*statuses: int):
    remaining = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        status = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        return httpx.Response(status, text=f"status {status}")

    return handler


@pytest.mark.asyncio()
async def test_retries_server_errors_and_rate_limits(upstream: FakeUpstream) -> None:
    upstream.add(URL, handler=_sequence(503, 429, 200))

    text = await _fetcher(upstream, retries=2).get_text(URL)

    assert text == "status 200"
    assert len(upstream.requests) == 3


@pytest.mark.asyncio()
async def test_gives_up_after_the_retry_budget(upstream: FakeUpstream) -> None:
    upstream.add(URL, status=502, text="bad gateway")

    with pytest.raises(TransportError) as excinfo:
        await _fetcher(upstream, retries=1).get(URL)

    assert excinfo.value.status_code == 502
    assert len(upstream.requests) == 2


@pytest.mark.asyncio()
async def test_client_errors_are_not_retried(upstream: FakeUpstream) -> None:
    with pytest.raises(TransportError) as excinfo:
        await _fetcher(upstream, retries=3).get(URL)

    assert excinfo.value.status_code == 404
    assert len(upstream.requests) == 1


@pytest.mark.asyncio()
async def test_connection_errors_are_retried(upstream: FakeUpstream) -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text="ok")

    upstream.add(URL, handler=handler)

    assert await _fetcher(upstream, retries=1).get_text(URL) == "ok"
    assert len(attempts) == 2


@pytest.mark.asyncio()
async def test_timeouts_are_not_retried(upstream: FakeUpstream) -> None:
    async def stalled(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, text="late")

    upstream.add(URL, handler=stalled)

    with pytest.raises(TransportError) as excinfo:
        await _fetcher(upstream, retries=2, timeout=0.05).get(URL)

    assert excinfo.value.timeout
    assert len(upstream.requests) == 1
