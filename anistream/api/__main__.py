"""CLI entry point for launching the resolver API with Uvicorn."""
import logging
import os

import uvicorn

from ..settings import ResolverSettings
from .app import create_app


def main() -> None:
    """Start a server for the resolver API."""
    settings = ResolverSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.environ.get("ANISTREAM_PORT", "8000"))
    uvicorn.run(create_app(settings), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
