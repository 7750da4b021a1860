"""FastAPI application for the holder export service."""

from .app import create_app

__all__ = ["create_app"]
