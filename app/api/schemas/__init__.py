"""API schemas for the page relay REST API."""

# Request schemas
from .requests import RelayRequest

# Response schemas
from .responses import (
    ErrorResponse,
    HealthResponse,
    RelayErrorResponse,
    RenderResponse,
)

__all__ = [
    # Request schemas
    "RelayRequest",

    # Response schemas
    "ErrorResponse",
    "HealthResponse",
    "RelayErrorResponse",
    "RenderResponse",
]
