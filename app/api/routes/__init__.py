"""API routes for the page relay REST API."""

from .relay import router as relay_router

__all__ = [
    "relay_router",
]
