"""API response schemas for the page relay REST API.

This module defines Pydantic models for render results, relay errors,
generic error responses and health checks.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class RenderResponse(BaseModel):
    """Sanitized page content."""

    success: bool = Field(default=True)

    content: str = Field(
        ...,
        description="Page HTML with scripts and inline event handlers removed"
    )

    url: str = Field(
        ...,
        description="Final page URL after redirects"
    )

    status: int = Field(
        default=200,
        description="Relay status code"
    )

    class Config:
        """Pydantic configuration with examples for OpenAPI documentation."""
        json_schema_extra = {
            "example": {
                "success": True,
                "content": "<html><head><title>Example</title></head><body>...</body></html>",
                "url": "https://example.com/",
                "status": 200
            }
        }


class RelayErrorResponse(BaseModel):
    """Error body returned by render and screenshot."""

    success: bool = Field(default=False)

    error: str = Field(
        ...,
        description="Human-readable error message"
    )

    details: Optional[str] = Field(
        default=None,
        description="Raw engine error, only present in development mode"
    )

    class Config:
        """Pydantic configuration with examples for OpenAPI documentation."""
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Domain not found. Please check the URL."
            }
        }


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Used for framework level failures (unknown routes, malformed bodies,
    unexpected exceptions).
    """

    error: str = Field(
        ...,
        description="Error code or type"
    )

    message: str = Field(
        ...,
        description="Human-readable error message"
    )

    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details for debugging"
    )

    request_id: Optional[str] = Field(
        default=None,
        description="Unique request identifier for tracking"
    )

    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred"
    )


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal['healthy', 'degraded', 'unhealthy'] = Field(
        ...,
        description="Overall system health status"
    )

    version: str = Field(
        ...,
        description="API version"
    )

    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="Health check timestamp"
    )

    services: Dict[str, Literal['healthy', 'degraded', 'unhealthy']] = Field(
        ...,
        description="Health status of individual services"
    )

    uptime_seconds: float = Field(
        ...,
        ge=0,
        description="Application uptime in seconds"
    )

    class Config:
        """Pydantic configuration with examples for OpenAPI documentation."""
        json_schema_extra = {
            "example": {
                "status": "degraded",
                "version": "1.0.0",
                "timestamp": "2024-01-15T11:00:00Z",
                "services": {
                    "browser_engine": "degraded"
                },
                "uptime_seconds": 86400.5
            }
        }
