"""Error taxonomy surfaced by the resolution engine."""
from __future__ import annotations

from typing import Optional, Sequence

from .models import FailureKind, ProviderFailure


class ResolutionError(RuntimeError):
    """Base class for failures surfaced to callers of the resolution service."""


class InvalidRequest(ResolutionError):
    """Raised for malformed input before any provider is consulted."""


class UnknownProvider(InvalidRequest):
    """Raised when a caller asks for a provider id missing from the registry."""


class AllProvidersExhausted(ResolutionError):
    """Raised when no selected provider produced a non-empty source list."""

    def __init__(self, message: str, failures: Sequence[ProviderFailure]) -> None:
        super().__init__(message)
        self.failures: tuple[ProviderFailure, ...] = tuple(failures)


class ProviderUnavailable(AllProvidersExhausted):
    """Raised when a single explicitly requested provider could not be reached."""


class CatalogLookupError(ResolutionError):
    """Raised when the metadata catalog cannot map an id to a title."""

    def __init__(self, message: str, *, not_found: bool = False) -> None:
        super().__init__(message)
        self.not_found = not_found


class MalformedDocument(ValueError):
    """Raised by the HTML extractor when input cannot be parsed at all."""


class TransportError(RuntimeError):
    """Internal: an outbound call failed, timed out or returned a non-2xx status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, timeout: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timeout = timeout

    @property
    def kind(self) -> FailureKind:
        return FailureKind.TIMEOUT if self.timeout else FailureKind.TRANSPORT_FAILURE
