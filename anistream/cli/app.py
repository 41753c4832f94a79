"""Command line interface for the stream resolver API."""
from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import typer

from .client import create_client

DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Resolve anime episode streams through the resolver API.")


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the resolver API service.",
        show_default=True,
        envvar="ANISTREAM_API_BASE",
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _fail(response: httpx.Response) -> None:
    """Print the API error message to stderr and exit non-zero."""

    message = f"HTTP {response.status_code}"
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, dict):
        message = detail.get("message") or message
        for attempt in detail.get("attempts") or []:
            status = f" (HTTP {attempt['status']})" if attempt.get("status") else ""
            message += f"\n  - {attempt.get('provider')}: {attempt.get('reason')}{status} {attempt.get('detail', '')}".rstrip()
    elif isinstance(detail, str):
        message = detail
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _get(api_base: str, path: str, params: Optional[dict[str, Any]] = None) -> None:
    with create_client(api_base) as client:
        response = client.get(path, params=params)
        if response.status_code >= 400:
            _fail(response)
        _echo_json(response.json())


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    _get(api_base, "/health")


@app.command()
def providers(api_base: str = _api_base_option()) -> None:
    """List the provider registry in the order providers are tried."""

    _get(api_base, "/providers")


@app.command()
def resolve(
    title: str = typer.Argument(..., help="Anime title to resolve."),
    episode: str = typer.Argument(..., help='Episode number, e.g. "1" or "10.5".'),
    source: Optional[str] = typer.Option(None, "--source", help="Only try this provider id."),
    force_refresh: bool = typer.Option(
        False,
        "--force-refresh/--no-force-refresh",
        help="Bypass the resolution cache.",
        show_default=True,
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Resolve playable sources for one episode."""

    params: dict[str, Any] = {"title": title, "episode": episode}
    if source:
        params["source"] = source
    if force_refresh:
        params["forceRefresh"] = "true"
    _get(api_base, "/resolve", params)


@app.command()
def episodes(
    title: str = typer.Argument(..., help="Anime title to look up."),
    source: Optional[str] = typer.Option(None, "--source", help="Only try this provider id."),
    api_base: str = _api_base_option(),
) -> None:
    """List the episodes the first matching provider knows about."""

    params: dict[str, Any] = {"title": title}
    if source:
        params["source"] = source
    _get(api_base, "/episodes", params)
