"""HTTP API for the stream resolver."""
from .app import create_app

__all__ = ["create_app"]
