"""URL validation for relay targets.

Only absolute http/https URLs with a host are accepted. Validation happens
before any browser page is allocated.
"""

from typing import Any, Optional
from urllib.parse import urlparse

from ..errors import ValidationError


ALLOWED_SCHEMES = ('http', 'https')


def validate_target_url(url: Optional[Any]) -> str:
    """Validate a relay target URL.

    Args:
        url: Candidate URL string

    Returns:
        The stripped URL

    Raises:
        ValidationError: If the URL is missing, not a string, relative, or not http(s)

    Example:
        >>> validate_target_url(" https://example.com/path ")
        'https://example.com/path'
    """
    if url is not None and not isinstance(url, str):
        raise ValidationError("URL must be a string")
    if not url:
        raise ValidationError("URL is required")

    url = url.strip()
    if not url:
        raise ValidationError("URL cannot be empty or whitespace only")

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {e}") from e

    if not parsed.scheme:
        raise ValidationError(f"URL missing scheme: {url}")
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError(f"Unsupported URL scheme: {parsed.scheme}")
    if not parsed.netloc or not parsed.hostname:
        raise ValidationError(f"URL missing host: {url}")
    if any(ch.isspace() for ch in url):
        raise ValidationError(f"URL contains whitespace: {url}")

    return url


def is_valid_target_url(url: Optional[str]) -> bool:
    """Check if a URL would pass validate_target_url."""
    try:
        validate_target_url(url)
        return True
    except ValidationError:
        return False
