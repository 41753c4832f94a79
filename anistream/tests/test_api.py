"""Smoke tests for the resolver API application factory."""
from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from anistream.api import create_app
from anistream.resolver.catalog import CatalogClient
from anistream.resolver.orchestrator import FallbackOrchestrator
from anistream.resolver.player import PlayerResolver
from anistream.resolver.service import ResolutionService
from anistream.settings import ResolverSettings

from .conftest import FakeUpstream, ScriptedProvider, make_fetcher


@pytest.fixture()
def upstream_api(upstream: FakeUpstream) -> FakeUpstream:
    upstream.add("https://catalog.test/anime/21", json={"data": {"title": "Example Show"}})
    upstream.add("https://catalog.test/anime/500", status=500, text="down")
    return upstream


@pytest.fixture()
def client(upstream_api: FakeUpstream) -> TestClient:
    """Provide a test client whose service runs against scripted providers."""

    settings = ResolverSettings(cache_backend="none", catalog_base_url="https://catalog.test")
    app = create_app(settings=settings, transport=httpx.MockTransport(upstream_api))
    fetcher = make_fetcher(upstream_api)
    providers = [
        ScriptedProvider("animepahe", 10, fetcher, down=True),
        ScriptedProvider(
            "animesuge",
            20,
            fetcher,
            titles=["Example Show"],
            episodes=[1, 2],
            entries=["https://cdn.test/ex-720p.mp4", "https://cdn.test/ex-1080p.m3u8"],
        ),
        ScriptedProvider("animedao", 30, fetcher, titles=["Example Show"], episodes=[]),
    ]
    app.state.app_state.resolution_service = ResolutionService(
        providers,
        FallbackOrchestrator(PlayerResolver(fetcher)),
        catalog=CatalogClient(fetcher, base_url="https://catalog.test"),
    )
    return TestClient(app)


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    """The /health endpoint should respond with an OK status payload."""

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": "0.1.0",
        "cache": {"backend": "none", "status": "ok", "detail": None},
    }


def test_providers_endpoint_lists_registry_in_priority_order(client: TestClient) -> None:
    response = client.get("/providers")

    assert response.status_code == 200
    assert response.json() == [
        {"id": "animepahe", "priority": 10, "kind": "api", "enabled": True},
        {"id": "animesuge", "priority": 20, "kind": "html", "enabled": True},
        {"id": "aniwave", "priority": 25, "kind": "html", "enabled": True},
        {"id": "animedao", "priority": 30, "kind": "html", "enabled": True},
    ]


def test_resolve_returns_ranked_sources(client: TestClient) -> None:
    response = client.get("/resolve", params={"title": "Example Show", "episode": "1"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["providerUsed"] == "animesuge"
    assert payload["sources"] == [
        {"url": "https://cdn.test/ex-1080p.m3u8", "quality": "1080p", "isHls": True},
        {"url": "https://cdn.test/ex-720p.mp4", "quality": "720p", "isHls": False},
    ]
    assert payload["resolvedAt"]


@pytest.mark.parametrize(
    "params",
    [
        {"episode": "1"},
        {"title": "Example Show"},
        {"title": "Example Show", "episode": "one"},
        {"title": "Example Show", "episode": "-3"},
        {"title": "Example Show", "episode": "1", "source": "unknown"},
        {"title": "Example Show", "episode": "1", "forceRefresh": "maybe"},
    ],
)
def test_resolve_rejects_malformed_requests(client: TestClient, params: dict[str, str]) -> None:
    response = client.get("/resolve", params=params)

    assert response.status_code == 400
    assert response.json()["detail"]["message"]
    assert response.json()["detail"]["attempts"] == []


def test_resolve_reports_exhaustion_with_attempts(client: TestClient) -> None:
    response = client.get("/resolve", params={"title": "Example Show", "episode": "7"})

    assert response.status_code == 404
    attempts = response.json()["detail"]["attempts"]
    assert [(attempt["provider"], attempt["reason"]) for attempt in attempts] == [
        ("animepahe", "transport_failure"),
        ("animesuge", "episode_not_found"),
        ("animedao", "episode_not_found"),
    ]
    assert attempts[0]["status"] == 503


def test_resolve_reports_unreachable_requested_source(client: TestClient) -> None:
    response = client.get(
        "/resolve", params={"title": "Example Show", "episode": "1", "source": "animepahe"}
    )

    assert response.status_code == 502
    assert response.json()["detail"]["attempts"][0]["provider"] == "animepahe"


def test_requested_source_that_lacks_the_episode_is_not_found(client: TestClient) -> None:
    response = client.get(
        "/resolve", params={"title": "Example Show", "episode": "1", "source": "animedao"}
    )

    assert response.status_code == 404


def test_resolve_by_catalog_id(client: TestClient) -> None:
    response = client.get("/resolve", params={"catalogId": "21", "episode": "2", "forceRefresh": "true"})

    assert response.status_code == 200
    assert response.json()["providerUsed"] == "animesuge"


def test_resolve_by_catalog_id_maps_catalog_errors(client: TestClient) -> None:
    missing = client.get("/resolve", params={"catalogId": "99", "episode": "1"})
    unreachable = client.get("/resolve", params={"catalogId": "500", "episode": "1"})

    assert missing.status_code == 404
    assert unreachable.status_code == 502


def test_unexpected_failures_map_to_500(client: TestClient) -> None:
    class ExplodingService:
        async def resolve(self, *args, **kwargs):
            raise RuntimeError("boom")

    client.app.state.app_state.resolution_service = ExplodingService()

    response = client.get("/resolve", params={"title": "Example Show", "episode": "1"})

    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "Internal resolver error"


def test_episodes_endpoint_lists_first_provider_with_episodes(client: TestClient) -> None:
    response = client.get("/episodes", params={"title": "Example Show"})

    assert response.status_code == 200
    assert response.json() == {
        "providerUsed": "animesuge",
        "episodes": [
            {"id": "ep-1", "number": 1.0, "title": None},
            {"id": "ep-2", "number": 2.0, "title": None},
        ],
    }


def test_episodes_endpoint_requires_a_title(client: TestClient) -> None:
    response = client.get("/episodes")

    assert response.status_code == 400
