"""Runtime configuration for the resolver service."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class ProviderConfig(BaseModel):
    """Static registry entry for a single content provider."""

    id: str = Field(..., description="Stable provider identifier used in requests.")
    priority: int = Field(..., description="Lower numbers are tried first.")
    kind: Literal["api", "html"] = Field(
        ..., description="Whether the provider exposes a JSON API or is scraped."
    )
    base_url: str = Field(..., description="Origin the provider client talks to.")
    enabled: bool = Field(default=True)


def default_providers() -> list[ProviderConfig]:
    return [
        ProviderConfig(id="animepahe", priority=10, kind="api", base_url="https://animepahe.ru"),
        ProviderConfig(id="animesuge", priority=20, kind="html", base_url="https://animesugetv.to"),
        ProviderConfig(id="aniwave", priority=25, kind="html", base_url="https://aniwave.to"),
        ProviderConfig(id="animedao", priority=30, kind="html", base_url="https://animedao.to"),
    ]


class ResolverSettings(BaseSettings):
    """Environment-aware settings for the resolver service."""

    providers: list[ProviderConfig] = Field(
        default_factory=default_providers,
        description="Provider registry; override with a JSON list.",
    )
    provider_call_timeout: float = Field(
        default=8.0, gt=0, description="Timeout in seconds for a single provider call."
    )
    player_timeout: float = Field(
        default=10.0, gt=0, description="Timeout in seconds for unwrapping one entry point."
    )
    provider_attempt_timeout: float = Field(
        default=15.0, gt=0, description="Upper bound for a whole attempt against one provider."
    )
    http_retries: int = Field(
        default=1, ge=0, le=5, description="Extra attempts for connection errors, 429 and 5xx."
    )
    http_retry_backoff: float = Field(
        default=0.5, ge=0.0, description="Linear backoff step in seconds between retries."
    )
    match_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Minimum title confidence for a search hit."
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    cache_backend: Literal["memory", "redis", "none"] = Field(
        default="memory", description="Where successful resolutions are cached."
    )
    cache_ttl_seconds: int = Field(default=300, ge=1)
    cache_max_entries: int = Field(default=512, ge=1)
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the Redis-backed resolution cache.",
    )
    catalog_base_url: str = Field(
        default="https://api.jikan.moe/v4",
        description="Base URL of the read-only metadata catalog.",
    )
    expand_hls_variants: bool = Field(
        default=False,
        description="Fetch discovered HLS master playlists and emit one source per variant.",
    )
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="ANISTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("providers")
    @classmethod
    def _unique_provider_ids(cls, value: list[ProviderConfig]) -> list[ProviderConfig]:
        seen: set[str] = set()
        for provider in value:
            if provider.id in seen:
                raise ValueError(f"Duplicate provider id '{provider.id}'")
            seen.add(provider.id)
        return value
