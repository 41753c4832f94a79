"""Anime episode stream resolver."""

__version__ = "0.1.0"
