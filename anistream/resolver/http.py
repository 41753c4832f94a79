"""Outbound HTTP helpers shared by provider clients and the player resolver."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx

from ..settings import ResolverSettings
from .errors import TransportError

logger = logging.getLogger(__name__)

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_JSON = "application/json"

RETRYABLE_STATUSES = frozenset({429})


def _is_retryable(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUSES or status_code >= 500


def create_http_client(
    settings: ResolverSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Instantiate the shared async client used for all third-party calls."""

    return httpx.AsyncClient(
        headers={"User-Agent": settings.user_agent, "Accept-Language": "en-US,en;q=0.5"},
        timeout=httpx.Timeout(settings.provider_attempt_timeout),
        follow_redirects=True,
        transport=transport,
    )


class HttpFetcher:
    """Thin wrapper adding per-call timeouts and uniform error reporting."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        user_agent: str,
        timeout: float = 8.0,
        retries: int = 0,
        retry_backoff: float = 0.5,
    ) -> None:
        self._client = client
        self._user_agent = user_agent
        self._timeout = timeout
        self._retries = max(0, retries)
        self._retry_backoff = max(0.0, retry_backoff)

    @property
    def timeout(self) -> float:
        return self._timeout

    async def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        accept: str = ACCEPT_HTML,
        referer: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """GET with bounded retry/backoff for connection errors, 429 and 5xx.

        Timeouts are not retried.
        """

        request_headers = {"User-Agent": self._user_agent, "Accept": accept}
        if referer:
            request_headers["Referer"] = referer
        if headers:
            request_headers.update(headers)
        limit = timeout if timeout is not None else self._timeout

        total_attempts = self._retries + 1
        for attempt in range(total_attempts):
            logger.debug("GET %s (timeout=%ss, attempt %d/%d)", url, limit, attempt + 1, total_attempts)
            try:
                # wait_for cancels the request task on expiry, releasing the socket
                response = await asyncio.wait_for(
                    self._client.get(url, params=params, headers=request_headers),
                    timeout=limit,
                )
            except asyncio.TimeoutError as exc:
                raise TransportError(f"Timed out after {limit:g}s fetching {url}", timeout=True) from exc
            except httpx.HTTPError as exc:
                error = TransportError(f"Failed to fetch {url}: {exc}")
                error.__cause__ = exc
            else:
                if response.status_code < 400:
                    return response
                error = TransportError(
                    f"HTTP {response.status_code} from {url}", status_code=response.status_code
                )
                if not _is_retryable(response.status_code):
                    raise error

            if attempt >= total_attempts - 1:
                raise error
            delay = self._retry_backoff * (attempt + 1)
            logger.info("Retrying %s in %.2fs after: %s", url, delay, error)
            if delay > 0:
                await asyncio.sleep(delay)

        raise TransportError(f"Failed to fetch {url}")

    async def get_text(self, url: str, **kwargs: Any) -> str:
        response = await self.get(url, **kwargs)
        return response.text

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("accept", ACCEPT_JSON)
        response = await self.get(url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {url}", status_code=response.status_code) from exc
