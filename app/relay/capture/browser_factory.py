"""Browser factory for the shared headless Chromium instance.

This module provides the BrowserFactory class that owns the single long-lived
browser used by every relay operation. The browser is launched lazily on first
use and reused across concurrent requests; each operation gets its own
browser context and page which are closed when the operation finishes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Playwright,
    Page,
    Route,
    async_playwright,
)

from ..errors import BrowserLaunchError, ResourceCleanupError

logger = logging.getLogger(__name__)


DEFAULT_LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-gpu',
    '--single-process',
    '--disable-blink-features=AutomationControlled',
]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

# Hides the automation flag that login pages check for
HIDE_WEBDRIVER_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"
)


class BrowserConfig:
    """Configuration for browser launch and context setup."""

    def __init__(
        self,
        headless: bool = True,
        launch_args: Optional[List[str]] = None,
        viewport: Optional[Dict[str, int]] = None,
        user_agent: Optional[str] = DEFAULT_USER_AGENT,
        locale: Optional[str] = None,
        ignore_https_errors: bool = False,
        blocked_hosts: Optional[List[str]] = None,
        hide_webdriver: bool = True,
    ):
        """Initialize browser configuration.

        Args:
            headless: Run browser in headless mode
            launch_args: Chromium command line switches
            viewport: Viewport size dict with 'width' and 'height'
            user_agent: User-Agent string for every context
            locale: Locale for the browser context
            ignore_https_errors: Ignore SSL/TLS certificate errors
            blocked_hosts: Host fragments whose requests are aborted
            hide_webdriver: Install the navigator.webdriver init script
        """
        self.headless = headless
        self.launch_args = list(launch_args) if launch_args is not None else list(DEFAULT_LAUNCH_ARGS)
        self.viewport = viewport or {'width': 1920, 'height': 1080}
        self.user_agent = user_agent
        self.locale = locale
        self.ignore_https_errors = ignore_https_errors
        self.blocked_hosts = blocked_hosts or []
        self.hide_webdriver = hide_webdriver

    def to_launch_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser launch options."""
        return {
            'headless': self.headless,
            'args': list(self.launch_args),
            'ignore_default_args': ['--enable-automation'],
        }

    def to_context_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser context options."""
        options: Dict[str, Any] = {'viewport': dict(self.viewport)}

        if self.user_agent:
            options['user_agent'] = self.user_agent

        if self.locale:
            options['locale'] = self.locale

        if self.ignore_https_errors:
            options['ignore_https_errors'] = True

        return options


async def close_quietly(resource: Any, label: str = "resource") -> None:
    """Close a page or context, logging instead of raising on failure."""
    if resource is None:
        return
    try:
        await resource.close()
    except Exception as e:
        error = ResourceCleanupError(f"Failed to close {label}: {e}")
        logger.debug(str(error))


class BrowserFactory:
    """Owner of the shared Playwright browser instance."""

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or BrowserConfig()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._launch_count = 0
        self._active_pages = 0

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it on first use.

        Concurrent callers share a single launch: the check is repeated under
        the lock so only the first caller starts the engine.

        Raises:
            BrowserLaunchError: If Playwright or Chromium fails to start
        """
        if self.browser is not None:
            return self.browser

        async with self._lock:
            if self.browser is not None:
                return self.browser

            logger.info("Launching headless browser")
            try:
                self.playwright = await async_playwright().start()
                self.browser = await self.playwright.chromium.launch(**self.config.to_launch_options())
            except Exception as e:
                logger.error(f"Failed to launch browser: {e}")
                await self._release_driver()
                raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

            self._launch_count += 1
            logger.info(f"Browser launched successfully (headless={self.config.headless})")
            return self.browser

    async def _release_driver(self) -> None:
        browser, self.browser = self.browser, None
        playwright, self.playwright = self.playwright, None

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")

        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")

    async def stop(self) -> None:
        """Close the browser and Playwright driver."""
        if self.browser is None and self.playwright is None:
            return
        logger.info("Stopping browser factory")
        async with self._lock:
            await self._release_driver()
        logger.info("Browser factory stopped")

    async def create_context(
        self,
        blocked_hosts: Optional[List[str]] = None,
        **context_overrides
    ) -> BrowserContext:
        """Create a new isolated browser context on the shared browser.

        Args:
            blocked_hosts: Extra host fragments to abort for this context only
            **context_overrides: Override default context options
        """
        browser = await self.acquire()

        context_options = self.config.to_context_options()
        context_options.update(context_overrides)

        hosts = list(self.config.blocked_hosts) + list(blocked_hosts or [])

        context = await browser.new_context(**context_options)
        try:
            if self.config.hide_webdriver:
                await context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
            if hosts:
                await context.route("**/*", self._host_blocker(hosts))
        except Exception:
            await close_quietly(context, "context")
            raise
        return context

    @staticmethod
    def _host_blocker(hosts: List[str]):
        async def handle(route: Route) -> None:
            url = route.request.url
            if any(host in url for host in hosts):
                logger.debug(f"Blocked request: {url[:100]}")
                await route.abort()
            else:
                await route.continue_()
        return handle

    @asynccontextmanager
    async def page(
        self,
        blocked_hosts: Optional[List[str]] = None,
        **context_overrides
    ) -> AsyncGenerator[Page, None]:
        """Context manager for a single isolated page.

        Args:
            blocked_hosts: Host fragments whose requests are aborted
            **context_overrides: Override default context options

        Yields:
            Page that is closed, together with its context, on exit
        """
        context = await self.create_context(blocked_hosts=blocked_hosts, **context_overrides)
        page = None
        try:
            page = await context.new_page()
            self._active_pages += 1
            yield page
        finally:
            if page is not None:
                self._active_pages -= 1
                await close_quietly(page, "page")
            await close_quietly(context, "context")

    async def get_browser_version(self) -> Optional[str]:
        if not self.browser:
            return None
        try:
            return self.browser.version
        except Exception as e:
            logger.error(f"Failed to get browser version: {e}")
            return None

    async def health_check(self) -> bool:
        """Check if the browser is launched and connected."""
        if not self.browser:
            return False
        try:
            return self.browser.is_connected()
        except Exception as e:
            logger.error(f"Browser health check failed: {e}")
            return False

    @property
    def is_running(self) -> bool:
        return self.browser is not None

    @property
    def launch_count(self) -> int:
        """Number of successful browser launches."""
        return self._launch_count

    @property
    def active_pages(self) -> int:
        return self._active_pages

    def __repr__(self) -> str:
        return (
            f"BrowserFactory(headless={self.config.headless}, "
            f"running={self.is_running}, "
            f"pages={self.active_pages})"
        )
