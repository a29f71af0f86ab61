"""Full viewport PNG capture of a page."""

import logging
from typing import Optional

from ..errors import CaptureError
from ..utils.urls import validate_target_url
from .browser_factory import BrowserFactory
from .page_renderer import NavigationConfig, navigate

logger = logging.getLogger(__name__)


class ScreenshotCapturer:
    """Captures PNG screenshots on fresh pages from the shared browser."""

    def __init__(self, factory: BrowserFactory, config: Optional[NavigationConfig] = None):
        self.factory = factory
        self.config = config or NavigationConfig()

    async def capture(self, url: str) -> bytes:
        """Navigate to ``url`` and return the viewport as PNG bytes.

        Raises:
            ValidationError: If the URL is malformed (no page is opened)
            CaptureError: For any navigation or capture failure
            BrowserLaunchError: If the browser cannot be started
        """
        url = validate_target_url(url)
        logger.info(f"Capturing screenshot of {url}")

        async with self.factory.page() as page:
            try:
                await navigate(page, url, self.config)
                image = await page.screenshot(type="png")
            except Exception as e:
                logger.error(f"Screenshot failed for {url}: {e}")
                raise CaptureError("Failed to capture screenshot") from e

        logger.info(f"Captured screenshot of {url} ({len(image)} bytes)")
        return image
