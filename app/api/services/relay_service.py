"""Relay service for the REST API.

Owns the shared browser factory and the render/screenshot components built
from the relay configuration.
"""

import logging
from typing import Optional

from app.relay.capture.browser_factory import BrowserFactory
from app.relay.capture.page_renderer import PageRenderer
from app.relay.capture.screenshot import ScreenshotCapturer
from app.relay.config import RelayConfig, get_config
from app.relay.models.results import RenderResult

logger = logging.getLogger(__name__)


class RelayService:
    """Service wrapping the page renderer and screenshot capturer."""

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        factory: Optional[BrowserFactory] = None,
    ):
        """Initialize relay service.

        Args:
            config: Relay configuration, loaded from config/relay.yaml by default
            factory: Browser factory to share, created from the config by default
        """
        self.config = config or get_config().config
        self.factory = factory or BrowserFactory(self.config.get_browser_config())

        navigation = self.config.get_navigation_config()
        self.renderer = PageRenderer(self.factory, navigation)
        self.capturer = ScreenshotCapturer(self.factory, navigation)

    @property
    def expose_error_details(self) -> bool:
        return self.config.expose_error_details

    async def render(self, url: Optional[str]) -> RenderResult:
        return await self.renderer.render(url)

    async def screenshot(self, url: Optional[str]) -> bytes:
        return await self.capturer.capture(url)

    async def browser_status(self) -> str:
        """Report the browser engine state for health checks.

        The browser launches lazily, so "not started yet" is degraded rather
        than unhealthy.
        """
        if not self.factory.is_running:
            return "degraded"
        if await self.factory.health_check():
            return "healthy"
        return "unhealthy"

    async def shutdown(self) -> None:
        logger.info("Shutting down relay service")
        await self.factory.stop()


# Shared relay service instance so that every request uses one browser
_relay_service_instance: Optional[RelayService] = None


def get_relay_service() -> RelayService:
    """Dependency to provide the relay service instance."""
    global _relay_service_instance
    if _relay_service_instance is None:
        _relay_service_instance = RelayService()
    return _relay_service_instance


async def shutdown_relay_service() -> None:
    """Close the shared browser if the service was ever created."""
    global _relay_service_instance
    if _relay_service_instance is not None:
        await _relay_service_instance.shutdown()
        _relay_service_instance = None
