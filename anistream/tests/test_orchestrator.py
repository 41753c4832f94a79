"""Tests for the sequential fallback orchestrator."""
from __future__ import annotations

import asyncio

import pytest

from anistream.resolver.errors import AllProvidersExhausted, ProviderUnavailable
from anistream.resolver.models import FailureKind
from anistream.resolver.orchestrator import FallbackOrchestrator
from anistream.resolver.player import PlayerResolver

from .conftest import FakeUpstream, ScriptedProvider, make_fetcher


@pytest.fixture()
def orchestrator(fetcher) -> FallbackOrchestrator:
    return FallbackOrchestrator(PlayerResolver(fetcher), attempt_timeout=5.0)


@pytest.mark.asyncio()
async def test_providers_are_tried_in_priority_order(fetcher, orchestrator, calls) -> None:
    """Registration order is irrelevant; ascending priority decides."""

    providers = [
        ScriptedProvider("p3", 30, fetcher, titles=["Example Show"], episodes=[1],
                         entries=["https://cdn/p3-720p.mp4"], calls=calls),
        ScriptedProvider("p1", 10, fetcher, titles=["Something Else Entirely"], calls=calls),
        ScriptedProvider("p2", 20, fetcher, down=True, calls=calls),
    ]

    result = await orchestrator.run(providers, "Example Show", 1)

    assert result.provider_used == "p3"
    assert calls == [
        ("p1", "search"),
        ("p2", "search"),
        ("p3", "search"),
        ("p3", "list_episodes"),
        ("p3", "get_entry_point"),
    ]


@pytest.mark.asyncio()
async def test_later_providers_are_not_consulted_after_success(fetcher, orchestrator, calls) -> None:
    providers = [
        ScriptedProvider("p1", 10, fetcher, titles=["Example Show"], episodes=[1],
                         entries=["https://cdn/ex.mp4"], calls=calls),
        ScriptedProvider("p2", 20, fetcher, titles=["Example Show"], episodes=[1],
                         entries=["https://cdn/other.mp4"], calls=calls),
    ]

    result = await orchestrator.run(providers, "Example Show", 1)

    assert result.provider_used == "p1"
    assert all(provider_id == "p1" for provider_id, _ in calls)


@pytest.mark.asyncio()
async def test_missing_episode_advances_to_next_provider(fetcher, orchestrator, calls) -> None:
    """P1 knows the show but not episode 1, P2 serves a direct file."""

    providers = [
        ScriptedProvider("P1", 1, fetcher, titles=["Example Show"], episodes=[2, 3], calls=calls),
        ScriptedProvider("P2", 2, fetcher, titles=["Example Show"], episodes=[1],
                         entries=["https://cdn/ex.mp4"], calls=calls),
    ]

    result = await orchestrator.run(providers, "Example Show", 1)

    payload = result.to_dict()
    assert payload["providerUsed"] == "P2"
    assert payload["sources"] == [{"url": "https://cdn/ex.mp4", "quality": "direct", "isHls": False}]
    assert ("P1", "get_entry_point") not in calls


@pytest.mark.asyncio()
async def test_sources_from_all_entry_points_are_ranked(fetcher, orchestrator) -> None:
    providers = [
        ScriptedProvider(
            "p1", 10, fetcher, titles=["Example Show"], episodes=[10.5],
            entries=["https://cdn/ep-720p.mp4", "https://cdn/ep.m3u8", "https://cdn/ep-1080p.mp4"],
        ),
    ]

    result = await orchestrator.run(providers, "Example Show", 10.5)

    assert [source.quality_label for source in result.sources] == ["1080p", "720p", "direct"]


@pytest.mark.asyncio()
async def test_all_transport_failures_exhaust_with_ordered_reasons(fetcher, orchestrator) -> None:
    providers = [
        ScriptedProvider("p2", 20, fetcher, down=True),
        ScriptedProvider("p1", 10, fetcher, down=True),
    ]

    with pytest.raises(AllProvidersExhausted) as excinfo:
        await orchestrator.run(providers, "Example Show", 1)

    assert not isinstance(excinfo.value, ProviderUnavailable)
    failures = excinfo.value.failures
    assert [failure.provider_id for failure in failures] == ["p1", "p2"]
    assert {failure.kind for failure in failures} == {FailureKind.TRANSPORT_FAILURE}
    assert {failure.status_code for failure in failures} == {503}


@pytest.mark.asyncio()
async def test_explicit_single_provider_transport_failure_is_unavailable(fetcher, orchestrator) -> None:
    with pytest.raises(ProviderUnavailable) as excinfo:
        await orchestrator.run([ScriptedProvider("p1", 10, fetcher, down=True)], "Example Show", 1, explicit=True)

    assert excinfo.value.failures[0].kind is FailureKind.TRANSPORT_FAILURE


@pytest.mark.asyncio()
async def test_explicit_provider_without_the_title_is_plain_exhaustion(fetcher, orchestrator) -> None:
    provider = ScriptedProvider("p1", 10, fetcher, titles=["Other Anime Name"])

    with pytest.raises(AllProvidersExhausted) as excinfo:
        await orchestrator.run([provider], "Example Show", 1, explicit=True)

    assert not isinstance(excinfo.value, ProviderUnavailable)
    assert excinfo.value.failures[0].kind is FailureKind.NO_TITLE_MATCH


@pytest.mark.asyncio()
async def test_failure_reasons_follow_the_step_that_stopped(fetcher, orchestrator) -> None:
    providers = [
        ScriptedProvider("p1", 10, fetcher, titles=["Example Show"], episodes=[]),
        ScriptedProvider("p2", 20, fetcher, titles=["Example Show"], episodes=[1], entries=[]),
    ]

    with pytest.raises(AllProvidersExhausted) as excinfo:
        await orchestrator.run(providers, "Example Show", 1)

    assert [failure.kind for failure in excinfo.value.failures] == [
        FailureKind.EPISODE_NOT_FOUND,
        FailureKind.NO_ENTRY_POINTS,
    ]


@pytest.mark.asyncio()
async def test_unreachable_embeds_exhaust_the_provider(upstream: FakeUpstream) -> None:
    upstream.add("https://vidstream.test/e/1", status=502, text="bad gateway")
    fetcher = make_fetcher(upstream)
    orchestrator = FallbackOrchestrator(PlayerResolver(fetcher))
    provider = ScriptedProvider(
        "p1", 10, fetcher, titles=["Example Show"], episodes=[1], entries=["https://vidstream.test/e/1"]
    )

    with pytest.raises(AllProvidersExhausted) as excinfo:
        await orchestrator.run([provider], "Example Show", 1)

    failure = excinfo.value.failures[0]
    assert failure.kind is FailureKind.NO_SOURCES
    assert failure.status_code == 502


@pytest.mark.asyncio()
async def test_slow_provider_attempt_times_out_and_falls_back(fetcher, calls) -> None:
    orchestrator = FallbackOrchestrator(PlayerResolver(fetcher), attempt_timeout=0.05)
    providers = [
        ScriptedProvider("slow", 10, fetcher, titles=["Example Show"], search_delay=5, calls=calls),
        ScriptedProvider("fast", 20, fetcher, titles=["Example Show"], episodes=[1],
                         entries=["https://cdn/ex.mp4"], calls=calls),
    ]

    result = await orchestrator.run(providers, "Example Show", 1)

    assert result.provider_used == "fast"
    assert calls[0] == ("slow", "search")


@pytest.mark.asyncio()
async def test_list_episodes_returns_first_non_empty_listing(fetcher, orchestrator) -> None:
    providers = [
        ScriptedProvider("p1", 10, fetcher, titles=["Example Show"], episodes=[]),
        ScriptedProvider("p2", 20, fetcher, titles=["Example Show"], episodes=[2, 1]),
    ]

    provider_id, episodes = await orchestrator.list_episodes(providers, "Example Show")

    assert provider_id == "p2"
    assert [episode.number for episode in episodes] == [1.0, 2.0]


@pytest.mark.asyncio()
async def test_cancelling_a_run_stops_before_the_next_provider(fetcher, orchestrator, calls) -> None:
    providers = [
        ScriptedProvider("p1", 10, fetcher, titles=["Example Show"], search_delay=5, calls=calls),
        ScriptedProvider("p2", 20, fetcher, titles=["Example Show"], episodes=[1],
                         entries=["https://cdn/ex.mp4"], calls=calls),
    ]
    task = asyncio.create_task(orchestrator.run(providers, "Example Show", 1))
    while ("p1", "search") not in calls:
        await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert calls == [("p1", "search")]
