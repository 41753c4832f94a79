"""Router exports for the resolver API."""
from . import episodes, health, providers, resolve

__all__ = ["episodes", "health", "providers", "resolve"]
