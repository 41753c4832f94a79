"""Pydantic models exposed by the resolver API."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..resolver.models import EpisodeDescriptor, ProviderFailure, ResolutionResult


class CacheHealthStatus(BaseModel):
    """Represents resolution cache connectivity."""

    backend: Literal["memory", "redis", "none"] = Field(default="memory")
    status: Literal["ok", "error"] = Field(default="ok")
    detail: str | None = Field(
        default=None, description="Optional diagnostic message when the cache is unavailable."
    )


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default=__version__, description="Semantic version of the API service.")
    cache: CacheHealthStatus = Field(default_factory=CacheHealthStatus)


class ProviderModel(BaseModel):
    """Registry entry as exposed by GET /providers."""

    id: str
    priority: int
    kind: Literal["api", "html"]
    enabled: bool = Field(default=True)


class StreamSourceModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    quality: str = Field(..., description='Quality label such as "1080p" or "iframe/unresolved".')
    is_hls: bool = Field(..., alias="isHls")


class ResolutionModel(BaseModel):
    """Successful resolution: sources are ordered best quality first."""

    model_config = ConfigDict(populate_by_name=True)

    sources: list[StreamSourceModel] = Field(..., min_length=1)
    provider_used: str = Field(..., alias="providerUsed")
    resolved_at: datetime = Field(..., alias="resolvedAt")

    @classmethod
    def from_result(cls, result: ResolutionResult) -> "ResolutionModel":
        return cls.model_validate(result.to_dict())


class EpisodeModel(BaseModel):
    id: str
    number: float
    title: str | None = None

    @classmethod
    def from_descriptor(cls, episode: EpisodeDescriptor) -> "EpisodeModel":
        return cls(id=episode.episode_id, number=episode.number, title=episode.title)


class EpisodeListModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    provider_used: str = Field(..., alias="providerUsed")
    episodes: list[EpisodeModel]


class AttemptModel(BaseModel):
    """One provider's reason for failing, in the order providers were tried."""

    provider: str
    reason: str
    detail: str = ""
    status: int | None = None

    @classmethod
    def from_failure(cls, failure: ProviderFailure) -> "AttemptModel":
        return cls.model_validate(failure.to_dict())


class ErrorDetail(BaseModel):
    message: str
    attempts: list[AttemptModel] = Field(default_factory=list)
