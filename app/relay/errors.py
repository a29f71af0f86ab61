"""Error taxonomy for page relay operations.

Validation and navigation errors are recovered at the operation boundary and
turned into structured responses. Login step errors never leave the login
orchestrator. Browser launch failure is the only fatal condition.
"""

import logging
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for all page relay errors."""
    pass


class ValidationError(RelayError):
    """Raised when a target URL is missing or malformed."""
    pass


class BrowserLaunchError(RelayError):
    """Raised when the headless browser cannot be launched."""
    pass


class CaptureError(RelayError):
    """Raised when a screenshot capture fails."""
    pass


class ResourceCleanupError(RelayError):
    """Raised (and swallowed) when a page or context fails to close."""
    pass


class LoginStepError(RelayError):
    """Wraps a failure raised during one step of the login sequence."""

    def __init__(self, step: int, action: str, message: str):
        super().__init__(message)
        self.step = step
        self.action = action
        self.message = message


class VerificationRequiredError(RelayError):
    """Raised when the login site asks for an extra verification step."""
    pass


class NavigationCategory:
    """User-facing navigation failure categories."""
    DNS_NOT_FOUND = "dns_not_found"
    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    BLOCKED = "blocked"
    UNKNOWN = "unknown"


NAVIGATION_MESSAGES = {
    NavigationCategory.DNS_NOT_FOUND: "Domain not found. Please check the URL.",
    NavigationCategory.CONNECTION_REFUSED: "Connection refused by the server.",
    NavigationCategory.TIMEOUT: "The page took too long to load.",
    NavigationCategory.BLOCKED: "The request was blocked by the client.",
    NavigationCategory.UNKNOWN: "Failed to render the page.",
}

# Engine message fragments, checked in order
_CATEGORY_MARKERS = [
    (NavigationCategory.DNS_NOT_FOUND, ("ERR_NAME_NOT_RESOLVED", "getaddrinfo", "ENOTFOUND")),
    (NavigationCategory.CONNECTION_REFUSED, ("ERR_CONNECTION_REFUSED", "ECONNREFUSED")),
    (NavigationCategory.BLOCKED, ("ERR_BLOCKED_BY_CLIENT",)),
    (NavigationCategory.TIMEOUT, ("Timeout", "ERR_TIMED_OUT")),
]


class NavigationError(RelayError):
    """Navigation failure mapped to a fixed user-facing category.

    Attributes:
        category: One of the NavigationCategory values
        message: User-facing message for the category
        details: Raw engine error text, only surfaced in development mode
    """

    def __init__(self, category: str, details: Optional[str] = None):
        self.category = category
        self.message = NAVIGATION_MESSAGES.get(category, NAVIGATION_MESSAGES[NavigationCategory.UNKNOWN])
        self.details = details
        super().__init__(self.message)


def classify_navigation_error(error: BaseException) -> NavigationError:
    """Map a raw engine error to a NavigationError.

    Args:
        error: Exception raised by Playwright or the renderer

    Returns:
        NavigationError carrying the category and the raw message as details
    """
    if isinstance(error, NavigationError):
        return error

    raw_message = str(error) or type(error).__name__

    if isinstance(error, PlaywrightTimeoutError):
        return NavigationError(NavigationCategory.TIMEOUT, raw_message)

    for category, markers in _CATEGORY_MARKERS:
        if any(marker in raw_message for marker in markers):
            return NavigationError(category, raw_message)

    logger.debug(f"Unclassified navigation error: {raw_message[:200]}")
    return NavigationError(NavigationCategory.UNKNOWN, raw_message)
