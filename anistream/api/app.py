"""Application factory for the stream resolver API."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..settings import ResolverSettings
from .routers import episodes, health, providers, resolve
from .state import AppState


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await app.state.app_state.close()


def create_app(
    settings: ResolverSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or ResolverSettings()
    app_state = AppState(settings=resolved_settings, transport=transport)

    app = FastAPI(title="Anistream Resolver API", version=__version__, lifespan=lifespan)
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    for router in (
        health.router,
        providers.router,
        resolve.router,
        episodes.router,
    ):
        app.include_router(router)

    return app
