"""
Sequential provider fallback.

Providers are tried one after another in ascending priority. Each attempt
walks search -> list episodes -> entry points -> player resolution and either
produces a ranked, non-empty source list (done) or a ``ProviderFailure``
explaining where it stopped, after which the next provider is tried.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from . import diagnostics
from .errors import AllProvidersExhausted, ProviderUnavailable
from .models import (
    EpisodeDescriptor,
    FailureKind,
    ProviderFailure,
    ResolutionResult,
    StreamSource,
)
from .player import PlayerResolver
from .providers.base import ProviderClient
from .quality import rank

logger = logging.getLogger(__name__)

TRANSPORT_KINDS = (FailureKind.TRANSPORT_FAILURE, FailureKind.TIMEOUT)


class AttemptState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    LISTING = "listing"
    ENTRY_LOOKUP = "entry_lookup"
    RESOLVING = "resolving"
    DONE = "done"
    EXHAUSTED = "exhausted"


class _Miss(Exception):
    """Ends one provider attempt with the given failure kind."""

    def __init__(self, kind: FailureKind, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.status_code = status_code


def find_episode(episodes: Sequence[EpisodeDescriptor], number: float) -> Optional[EpisodeDescriptor]:
    for episode in episodes:
        if episode.number == number:
            return episode
    return None


class FallbackOrchestrator:
    """Drives provider clients in priority order until one yields sources."""

    def __init__(
        self,
        player: PlayerResolver,
        *,
        attempt_timeout: float = 15.0,
    ) -> None:
        self._player = player
        self._attempt_timeout = attempt_timeout

    async def run(
        self,
        providers: Sequence[ProviderClient],
        title: str,
        episode_number: float,
        *,
        explicit: bool = False,
    ) -> ResolutionResult:
        """Resolve ``(title, episode_number)`` against ``providers``.

        ``explicit`` marks a caller-selected single provider: when that
        provider failed purely on transport, ``ProviderUnavailable`` is
        raised instead of the generic exhaustion error.
        """

        failures: List[ProviderFailure] = []
        ordered = sorted(providers, key=lambda provider: provider.priority)

        for provider in ordered:
            with diagnostics.capture() as notes:
                try:
                    sources = await asyncio.wait_for(
                        self._attempt(provider, title, episode_number, notes),
                        timeout=self._attempt_timeout,
                    )
                except asyncio.TimeoutError:
                    failure = ProviderFailure(
                        provider_id=provider.id,
                        kind=FailureKind.TIMEOUT,
                        detail=f"Attempt exceeded {self._attempt_timeout:g}s",
                    )
                except _Miss as miss:
                    failure = ProviderFailure(
                        provider_id=provider.id,
                        kind=miss.kind,
                        detail=miss.detail,
                        status_code=miss.status_code,
                    )
                else:
                    logger.info(
                        "[%s] %s: %d source(s) for '%s' episode %g",
                        provider.id,
                        AttemptState.DONE.value,
                        len(sources),
                        title,
                        episode_number,
                    )
                    return ResolutionResult(sources=tuple(sources), provider_used=provider.id)

            logger.warning(
                "[%s] Attempt failed (%s): %s", provider.id, failure.kind.value, failure.detail
            )
            failures.append(failure)

        logger.warning(
            "%s: no provider resolved '%s' episode %g",
            AttemptState.EXHAUSTED.value,
            title,
            episode_number,
        )
        message = f"No provider could resolve '{title}' episode {episode_number:g}"
        if explicit and len(failures) == 1 and failures[0].kind in TRANSPORT_KINDS:
            raise ProviderUnavailable(
                f"Provider '{failures[0].provider_id}' is unreachable", failures
            )
        raise AllProvidersExhausted(message, failures)

    async def list_episodes(
        self,
        providers: Sequence[ProviderClient],
        title: str,
        *,
        explicit: bool = False,
    ) -> Tuple[str, List[EpisodeDescriptor]]:
        """Return the first non-empty episode list, walking providers in priority order."""

        failures: List[ProviderFailure] = []
        for provider in sorted(providers, key=lambda item: item.priority):
            with diagnostics.capture() as notes:
                try:
                    episodes = await asyncio.wait_for(
                        self._listing(provider, title, notes), timeout=self._attempt_timeout
                    )
                except asyncio.TimeoutError:
                    failures.append(
                        ProviderFailure(
                            provider_id=provider.id,
                            kind=FailureKind.TIMEOUT,
                            detail=f"Listing exceeded {self._attempt_timeout:g}s",
                        )
                    )
                    continue
                except _Miss as miss:
                    failures.append(
                        ProviderFailure(provider.id, miss.kind, miss.detail, miss.status_code)
                    )
                    continue
            return provider.id, episodes

        if explicit and len(failures) == 1 and failures[0].kind in TRANSPORT_KINDS:
            raise ProviderUnavailable(f"Provider '{failures[0].provider_id}' is unreachable", failures)
        raise AllProvidersExhausted(f"No provider lists episodes for '{title}'", failures)

    async def _listing(
        self, provider: ProviderClient, title: str, notes: List[diagnostics.Note]
    ) -> List[EpisodeDescriptor]:
        self._enter(provider, AttemptState.SEARCHING)
        matches = await provider.search(title)
        if not matches:
            raise _miss(notes, FailureKind.NO_TITLE_MATCH, f"No match for '{title}'")

        self._enter(provider, AttemptState.LISTING)
        mark = len(notes)
        episodes = await provider.list_episodes(matches[0].external_id)
        if not episodes:
            raise _miss(
                notes[mark:], FailureKind.EPISODE_NOT_FOUND, f"No episodes listed for '{matches[0].matched_title}'"
            )
        return episodes

    async def _attempt(
        self,
        provider: ProviderClient,
        title: str,
        episode_number: float,
        notes: List[diagnostics.Note],
    ) -> List[StreamSource]:
        self._enter(provider, AttemptState.SEARCHING)
        mark = len(notes)
        matches = await provider.search(title)
        if not matches:
            raise _miss(notes[mark:], FailureKind.NO_TITLE_MATCH, f"No match for '{title}'")
        match = matches[0]
        logger.info(
            "[%s] Matched '%s' (confidence %.2f)", provider.id, match.matched_title, match.confidence
        )

        self._enter(provider, AttemptState.LISTING)
        mark = len(notes)
        episodes = await provider.list_episodes(match.external_id)
        episode = find_episode(episodes, episode_number)
        if episode is None:
            detail = (
                f"'{match.matched_title}' has no episode {episode_number:g}"
                if episodes
                else f"No episodes listed for '{match.matched_title}'"
            )
            raise _miss(notes[mark:], FailureKind.EPISODE_NOT_FOUND, detail)

        self._enter(provider, AttemptState.ENTRY_LOOKUP)
        mark = len(notes)
        entries = await provider.get_entry_point(match.external_id, episode.episode_id)
        if not entries:
            raise _miss(
                notes[mark:], FailureKind.NO_ENTRY_POINTS, f"No entry points for episode {episode_number:g}"
            )

        self._enter(provider, AttemptState.RESOLVING)
        mark = len(notes)
        sources: List[StreamSource] = []
        for entry in entries:
            sources.extend(await self._player.resolve(entry))
        if not sources:
            note = diagnostics.last_transport_note(notes[mark:])
            raise _Miss(
                FailureKind.NO_SOURCES,
                f"None of {len(entries)} entry point(s) were reachable",
                note.status_code if note else None,
            )
        return rank(sources)

    @staticmethod
    def _enter(provider: ProviderClient, state: AttemptState) -> None:
        logger.info("[%s] %s", provider.id, state.value)


def _miss(step_notes: Sequence[diagnostics.Note], fallback: FailureKind, detail: str) -> _Miss:
    """Build the failure for a step that came back empty.

    A note of the expected kind wins, then any transport note recorded during
    the step, then a generic failure of the expected kind.
    """

    for recorded in reversed(step_notes):
        if recorded.kind is fallback:
            return _Miss(recorded.kind, recorded.detail, recorded.status_code)
    note = diagnostics.last_transport_note(list(step_notes))
    if note is not None:
        return _Miss(note.kind, note.detail, note.status_code)
    return _Miss(fallback, detail)
