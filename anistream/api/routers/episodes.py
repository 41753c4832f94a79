"""Episode listing endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...resolver import ResolutionService
from ..dependencies import get_resolution_service
from ..errors import to_http_exception
from ..schemas import EpisodeListModel, EpisodeModel
from .resolve import ERROR_RESPONSES

router = APIRouter(tags=["episodes"])


@router.get("/episodes", response_model=EpisodeListModel, responses=ERROR_RESPONSES)
async def list_episodes(
    title: str | None = Query(default=None),
    source: str | None = Query(default=None),
    service: ResolutionService = Depends(get_resolution_service),
) -> EpisodeListModel:
    """List the episodes of the first provider that knows the title."""

    try:
        provider_id, episodes = await service.list_episodes(title, source)
    except Exception as exc:
        raise to_http_exception(exc) from exc

    return EpisodeListModel(
        provider_used=provider_id,
        episodes=[EpisodeModel.from_descriptor(episode) for episode in episodes],
    )
