"""Command line client for the stream resolver API."""
