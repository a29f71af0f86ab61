"""Debug telemetry collector for login attempts.

Combines the network and console observers on one page so that a login
attempt can be diagnosed afterwards. Observers only append to the operation
log; they never block or change navigation.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from playwright.async_api import Page

from ..models.operation_log import DebugSnapshot, OperationLog
from .console_observer import ConsoleErrorObserver
from .network_observer import AuthNetworkObserver

logger = logging.getLogger(__name__)


PAGE_DEBUG_SCRIPT = """
() => {
    const inputs = Array.from(document.querySelectorAll('input'));
    const body = document.body;
    return {
        url: window.location.href,
        title: document.title,
        readyState: document.readyState,
        bodyLength: body ? body.innerHTML.length : 0,
        inputCount: inputs.length,
        inputs: inputs.map((input, index) => ({
            index: index,
            type: input.type,
            name: input.name,
            autocomplete: input.autocomplete,
            visible: input.offsetWidth > 0 && input.offsetHeight > 0
        })),
        bodyTextPreview: body ? body.innerText.substring(0, 300) : '',
        hasReactRoot: !!document.querySelector('#react-root')
    };
}
"""


class TelemetryCollector:
    """Attaches diagnostic observers to a page for the length of a login."""

    def __init__(
        self,
        url_patterns: Optional[Iterable[str]] = None,
        benign_patterns: Optional[Iterable[str]] = None,
    ):
        """Initialize telemetry collector.

        Args:
            url_patterns: Override for the authentication URL patterns
            benign_patterns: Override for the ignored console error patterns
        """
        self.url_patterns = list(url_patterns) if url_patterns is not None else None
        self.benign_patterns = list(benign_patterns) if benign_patterns is not None else None
        self.page: Optional[Page] = None
        self.log: Optional[OperationLog] = None
        self.network_observer: Optional[AuthNetworkObserver] = None
        self.console_observer: Optional[ConsoleErrorObserver] = None

    def attach(self, page: Page, log: OperationLog) -> None:
        """Register request, response and console observers on a page."""
        if self.page is not None:
            raise RuntimeError("Telemetry collector is already attached")

        self.page = page
        self.log = log
        self.network_observer = AuthNetworkObserver(page, log, self.url_patterns)
        self.console_observer = ConsoleErrorObserver(page, log, self.benign_patterns)
        self.network_observer.attach()
        self.console_observer.attach()
        logger.debug("Telemetry collector attached")

    async def flush(self) -> None:
        """Wait for response bodies still being read."""
        if self.network_observer is not None:
            await self.network_observer.flush()

    def detach(self) -> None:
        if self.network_observer is not None:
            self.network_observer.detach()
        if self.console_observer is not None:
            self.console_observer.detach()
        self.page = None
        logger.debug("Telemetry collector detached")

    async def snapshot(self, stage: str) -> Optional[DebugSnapshot]:
        """Record the current page state under ``stage``.

        Failures are logged and ignored.
        """
        if self.page is None or self.log is None:
            return None
        try:
            info: Dict[str, Any] = await self.page.evaluate(PAGE_DEBUG_SCRIPT)
            return self.log.add_debug(stage, info or {})
        except Exception as e:
            logger.debug(f"Failed to capture debug snapshot '{stage}': {e}")
            return None

    @property
    def is_attached(self) -> bool:
        return self.page is not None

    def __repr__(self) -> str:
        return f"TelemetryCollector(attached={self.is_attached}, log={self.log!r})"
