"""Page renderer returning sanitized page content.

This module provides the PageRenderer class: for each request it opens a
fresh page from the shared browser, navigates to the target, waits for the
page to settle and returns the sanitized markup.
"""

import logging
from typing import Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from ..errors import NavigationError, classify_navigation_error
from ..models.results import RenderResult
from ..utils.urls import validate_target_url
from .browser_factory import BrowserFactory
from .sanitizer import sanitize_html

logger = logging.getLogger(__name__)


class WaitStrategy:
    """Playwright load states usable for navigation."""
    NETWORKIDLE = "networkidle"
    LOAD = "load"
    DOMCONTENTLOADED = "domcontentloaded"
    COMMIT = "commit"


class NavigationConfig:
    """Timeouts and wait policy shared by render and screenshot."""

    def __init__(
        self,
        wait_until: str = WaitStrategy.NETWORKIDLE,
        navigation_timeout_ms: int = 30000,
        load_fallback_ms: int = 5000,
    ):
        """Initialize navigation configuration.

        Args:
            wait_until: Load state that ends navigation
            navigation_timeout_ms: Ceiling for navigation and page actions
            load_fallback_ms: How long to wait for the load event afterwards
        """
        self.wait_until = wait_until
        self.navigation_timeout_ms = navigation_timeout_ms
        self.load_fallback_ms = load_fallback_ms


async def navigate(page: Page, url: str, config: NavigationConfig) -> None:
    """Navigate ``page`` to ``url`` using the configured wait policy."""
    page.set_default_navigation_timeout(config.navigation_timeout_ms)
    page.set_default_timeout(config.navigation_timeout_ms)

    await page.goto(url, wait_until=config.wait_until, timeout=config.navigation_timeout_ms)

    try:
        await page.wait_for_load_state("load", timeout=config.load_fallback_ms)
    except PlaywrightTimeoutError:
        logger.debug(f"Load state not reached within {config.load_fallback_ms}ms, continuing")


class PageRenderer:
    """Renders pages to sanitized HTML."""

    def __init__(self, factory: BrowserFactory, config: Optional[NavigationConfig] = None):
        self.factory = factory
        self.config = config or NavigationConfig()

    async def render(self, url: str) -> RenderResult:
        """Render a page and return its sanitized markup.

        Args:
            url: Absolute http(s) URL to render

        Returns:
            RenderResult with sanitized content and the final URL

        Raises:
            ValidationError: If the URL is malformed (no page is opened)
            NavigationError: If navigation or extraction fails
            BrowserLaunchError: If the browser cannot be started
        """
        url = validate_target_url(url)
        logger.info(f"Rendering {url}")

        async with self.factory.page() as page:
            try:
                await navigate(page, url, self.config)
                html = await page.content()
                result = RenderResult(
                    success=True,
                    content=sanitize_html(html),
                    url=page.url,
                    status=200,
                )
            except NavigationError:
                raise
            except Exception as e:
                error = classify_navigation_error(e)
                logger.error(f"Render failed for {url} ({error.category}): {e}")
                raise error from e

        logger.info(f"Rendered {url} ({len(result.content)} chars)")
        return result
