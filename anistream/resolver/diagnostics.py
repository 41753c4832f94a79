"""
Request-scoped diagnostic trail.

Provider clients swallow their own failures and return empty results. Before
doing so they record a note here so the orchestrator can explain afterwards
why a provider was skipped. The trail lives in a context variable, so
concurrent resolutions never see each other's notes.
"""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Optional

from .models import FailureKind


@dataclass(slots=True)
class Note:
    kind: FailureKind
    detail: str
    status_code: Optional[int] = None


_trail: ContextVar[Optional[list[Note]]] = ContextVar("anistream_trail", default=None)


def record(kind: FailureKind, detail: str, status_code: Optional[int] = None) -> None:
    """Append a note to the active trail; no-op outside a capture block."""

    notes = _trail.get()
    if notes is not None:
        notes.append(Note(kind=kind, detail=detail, status_code=status_code))


@contextmanager
def capture() -> Iterator[list[Note]]:
    notes: list[Note] = []
    token = _trail.set(notes)
    try:
        yield notes
    finally:
        _trail.reset(token)


def last_transport_note(notes: list[Note]) -> Optional[Note]:
    for note in reversed(notes):
        if note.kind in (FailureKind.TRANSPORT_FAILURE, FailureKind.TIMEOUT):
            return note
    return None
