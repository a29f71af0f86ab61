"""Cookie collector for harvesting session cookies.

This module provides the SessionCookieCollector class that reads cookies
from a page's browser context and converts them into SessionCookie records.
"""

import logging
from typing import List, Optional

from playwright.async_api import Page

from ..models.cookies import SessionCookie

logger = logging.getLogger(__name__)


def find_cookie(cookies: List[SessionCookie], name: str) -> Optional[SessionCookie]:
    """Return the first cookie called ``name`` that carries a value."""
    for cookie in cookies:
        if cookie.name == name and cookie.has_value:
            return cookie
    return None


class SessionCookieCollector:
    """Reads cookies from the context that owns a page."""

    def __init__(self, page: Page):
        """Initialize cookie collector.

        Args:
            page: Page whose browser context holds the cookies
        """
        self.page = page
        self.cookies: List[SessionCookie] = []

    async def collect(self) -> List[SessionCookie]:
        """Read all cookies from the browser context.

        Read failures propagate to the caller.

        Returns:
            List of SessionCookie records, also kept on ``self.cookies``
        """
        raw_cookies = await self.page.context.cookies()

        cookies = []
        for raw_cookie in raw_cookies:
            try:
                cookies.append(SessionCookie.from_playwright_cookie(raw_cookie))
            except Exception as e:
                logger.warning(f"Failed to process cookie {raw_cookie.get('name', 'unknown')}: {e}")

        self.cookies = cookies
        logger.debug(f"Collected {len(cookies)} cookies")
        return cookies

    async def collect_quietly(self) -> List[SessionCookie]:
        """Read cookies, returning the last known list if the read fails."""
        try:
            return await self.collect()
        except Exception as e:
            logger.debug(f"Cookie read failed, using last known cookies: {e}")
            return list(self.cookies)

    def __repr__(self) -> str:
        return f"SessionCookieCollector(cookies={len(self.cookies)})"
