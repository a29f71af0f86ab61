"""API service layer for page relay."""

from .relay_service import RelayService, get_relay_service, shutdown_relay_service

__all__ = [
    "RelayService",
    "get_relay_service",
    "shutdown_relay_service",
]
