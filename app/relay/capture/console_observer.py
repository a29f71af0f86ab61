"""Console observer for capturing page errors during login.

Console messages of type ``error`` are recorded into the operation log
unless they come from third-party sign-in widgets that fail routinely in a
headless browser.
"""

import logging
from typing import Iterable, List, Optional

from playwright.async_api import ConsoleMessage, Page

from ..models.operation_log import ErrorType, OperationLog

logger = logging.getLogger(__name__)


BENIGN_CONSOLE_PATTERNS = (
    'GSI_LOGGER',
    'accounts.google.com',
    'Google Identity Services',
    'appleid.cdn-apple.com',
    'AppleID',
)


class ConsoleErrorObserver:
    """Observer for console errors from a browser page."""

    def __init__(
        self,
        page: Page,
        log: OperationLog,
        benign_patterns: Optional[Iterable[str]] = None,
    ):
        self.page = page
        self.log = log
        self.benign_patterns: List[str] = (
            list(benign_patterns) if benign_patterns is not None else list(BENIGN_CONSOLE_PATTERNS)
        )
        self.filtered_count = 0
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.page.on("console", self._on_console_message)
        self._attached = True
        logger.debug("Console observer listener setup complete")

    def detach(self) -> None:
        if not self._attached:
            return
        try:
            self.page.remove_listener("console", self._on_console_message)
        except Exception as e:
            logger.debug(f"Failed to remove console listener: {e}")
        self._attached = False

    def is_benign(self, text: str) -> bool:
        """Check if a console error comes from a known third-party widget."""
        return any(pattern in text for pattern in self.benign_patterns)

    def _on_console_message(self, message: ConsoleMessage) -> None:
        try:
            if message.type != 'error':
                return

            text = message.text
            if self.is_benign(text):
                self.filtered_count += 1
                logger.debug(f"Filtering benign console error: {text[:100]}")
                return

            self.log.add_error(message=text, error_type=ErrorType.CONSOLE_ERROR)
            logger.debug(f"Console error: {text[:100]}")

        except Exception as e:
            logger.debug(f"Error processing console message: {e}")

    def __repr__(self) -> str:
        return f"ConsoleErrorObserver(errors={len(self.log.errors)}, filtered={self.filtered_count})"
