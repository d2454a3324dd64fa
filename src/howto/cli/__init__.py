"""Command-line interface for howto."""

from .app import app

__all__ = ["app"]
