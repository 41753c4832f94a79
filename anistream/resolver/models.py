"""
Value types shared by the resolution engine.

Everything here is created per request and never mutated afterwards; the
provider registry is the only long-lived instance data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ProviderKind(str, Enum):
    API_BACKED = "api"
    HTML_SCRAPED = "html"


class EntryKind(str, Enum):
    DIRECT_MEDIA = "direct"
    EMBED_PAGE = "embed"


class FailureKind(str, Enum):
    """Why a single provider attempt did not produce sources."""

    NO_TITLE_MATCH = "no_title_match"
    EPISODE_NOT_FOUND = "episode_not_found"
    TRANSPORT_FAILURE = "transport_failure"
    NO_ENTRY_POINTS = "no_entry_points"
    NO_SOURCES = "no_sources"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    id: str
    priority: int
    kind: ProviderKind


@dataclass(frozen=True, slots=True)
class SearchResult:
    provider_id: str
    external_id: str
    matched_title: str
    confidence: float


@dataclass(frozen=True, slots=True)
class EpisodeDescriptor:
    provider_id: str
    episode_id: str
    number: float
    title: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EntryPoint:
    url: str
    kind: EntryKind
    provider_id: str
    # Resolution label advertised by the provider next to the link, if any.
    label: Optional[str] = None
    referer: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StreamSource:
    url: str
    quality_label: str
    quality_rank: int
    is_hls: bool

    def to_dict(self) -> dict[str, object]:
        return {"url": self.url, "quality": self.quality_label, "isHls": self.is_hls}


@dataclass(frozen=True, slots=True)
class ProviderFailure:
    """Diagnostic record for one provider that did not succeed."""

    provider_id: str
    kind: FailureKind
    detail: str = ""
    status_code: Optional[int] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "provider": self.provider_id,
            "reason": self.kind.value,
            "detail": self.detail,
            "status": self.status_code,
        }


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    sources: tuple[StreamSource, ...]
    provider_used: str
    resolved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, object]:
        return {
            "sources": [source.to_dict() for source in self.sources],
            "providerUsed": self.provider_used,
            "resolvedAt": self.resolved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ResolutionResult":
        from .quality import quality_rank

        sources = tuple(
            StreamSource(
                url=item["url"],
                quality_label=item["quality"],
                quality_rank=quality_rank(item["quality"]),
                is_hls=bool(item.get("isHls")),
            )
            for item in payload["sources"]
        )
        return cls(
            sources=sources,
            provider_used=payload["providerUsed"],
            resolved_at=datetime.fromisoformat(payload["resolvedAt"]),
        )
