"""Health endpoints."""
from fastapi import APIRouter, Depends

from ...resolver import ResolutionService
from ..dependencies import get_resolution_service
from ..schemas import CacheHealthStatus, HealthStatus

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
async def get_health(
    service: ResolutionService = Depends(get_resolution_service),
) -> HealthStatus:
    """Return service heartbeat information."""

    cache = service.cache
    cache_status = CacheHealthStatus(backend=cache.backend, status="ok")
    if not await cache.ping():
        cache_status = CacheHealthStatus(
            backend=cache.backend, status="error", detail="cache_unreachable"
        )
    return HealthStatus(cache=cache_status)
