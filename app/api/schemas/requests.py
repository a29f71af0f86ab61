"""API request schemas for the page relay REST API."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class RelayRequest(BaseModel):
    """Request schema for render and screenshot calls.

    The URL is validated by the relay itself so that a missing, non-string or
    malformed URL is reported as a 400 with the relay's error message.
    """

    url: Optional[Any] = Field(
        default=None,
        description="Absolute http(s) URL of the page to load",
        examples=["https://example.com", "https://news.ycombinator.com/item?id=1"]
    )

    class Config:
        """Pydantic configuration with examples for OpenAPI documentation."""
        json_schema_extra = {
            "example": {
                "url": "https://example.com"
            }
        }
