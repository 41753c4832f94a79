"""Stream resolution endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...resolver import ResolutionService
from ...resolver.service import parse_flag
from ..dependencies import get_resolution_service
from ..errors import to_http_exception
from ..schemas import ErrorDetail, ResolutionModel

router = APIRouter(tags=["resolve"])

ERROR_RESPONSES = {
    400: {"model": ErrorDetail, "description": "Malformed request."},
    404: {"model": ErrorDetail, "description": "No provider produced a source."},
    502: {"model": ErrorDetail, "description": "The requested provider is unreachable."},
}


@router.get(
    "/resolve",
    response_model=ResolutionModel,
    responses=ERROR_RESPONSES,
    summary="Resolve playable sources for an episode",
)
async def resolve(
    title: str | None = Query(default=None, description="Anime title to search providers for."),
    episode: str | None = Query(default=None, description='Episode number, e.g. "1" or "10.5".'),
    source: str | None = Query(default=None, description="Restrict the lookup to one provider id."),
    catalog_id: str | None = Query(
        default=None, alias="catalogId", description="Catalog id used instead of a title."
    ),
    force_refresh: str | None = Query(default=None, alias="forceRefresh"),
    service: ResolutionService = Depends(get_resolution_service),
) -> ResolutionModel:
    """Return quality-ranked sources from the first provider that can serve the episode."""

    try:
        refresh = parse_flag(force_refresh, "forceRefresh")
        if catalog_id and not (title and title.strip()):
            result = await service.resolve_catalog_id(
                catalog_id, episode, source, force_refresh=refresh
            )
        else:
            result = await service.resolve(title, episode, source, force_refresh=refresh)
    except Exception as exc:
        raise to_http_exception(exc) from exc

    return ResolutionModel.from_result(result)
