"""Provider registry endpoint."""
from fastapi import APIRouter, Depends

from ...settings import ResolverSettings
from ..dependencies import get_settings
from ..schemas import ProviderModel

router = APIRouter(tags=["providers"])


@router.get("/providers", response_model=list[ProviderModel])
def list_providers(settings: ResolverSettings = Depends(get_settings)) -> list[ProviderModel]:
    """Return the static provider registry in the order providers are tried."""

    ordered = sorted(settings.providers, key=lambda provider: provider.priority)
    return [
        ProviderModel(
            id=provider.id,
            priority=provider.priority,
            kind=provider.kind,
            enabled=provider.enabled,
        )
        for provider in ordered
    ]
