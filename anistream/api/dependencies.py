"""FastAPI dependencies for the resolver API."""
from fastapi import Depends, Request

from ..resolver import ResolutionService
from ..settings import ResolverSettings
from .state import AppState


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> ResolverSettings:
    return app_state.settings


def get_resolution_service(app_state: AppState = Depends(get_app_state)) -> ResolutionService:
    """Return the resolution service dependency."""
    return app_state.resolution_service
