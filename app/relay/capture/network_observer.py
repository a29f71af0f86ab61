"""Network observer for authentication traffic.

This module provides the AuthNetworkObserver class that hooks into Playwright
network events and records requests and responses whose URL matches one of
the authentication URL patterns into an operation log.
"""

import asyncio
import json
import logging
from typing import Iterable, List, Optional, Set

from playwright.async_api import Page, Request, Response

from ..models.operation_log import OperationLog, ResponseRecord

logger = logging.getLogger(__name__)


AUTH_URL_PATTERNS = (
    '/i/api/1.1/onboarding',
    '/onboarding/task',
    '/i/flow/',
    '/login',
    '/sessions',
    '/account/',
    '/guest/activate',
)

BODY_PREVIEW_LENGTH = 200


class AuthNetworkObserver:
    """Records authentication requests and responses into an operation log."""

    def __init__(
        self,
        page: Page,
        log: OperationLog,
        url_patterns: Optional[Iterable[str]] = None,
    ):
        """Initialize network observer for a page.

        Args:
            page: Playwright page to observe
            log: Operation log receiving the records
            url_patterns: URL substrings selecting recorded traffic
        """
        self.page = page
        self.log = log
        self.url_patterns: List[str] = list(url_patterns) if url_patterns is not None else list(AUTH_URL_PATTERNS)
        self._body_tasks: Set[asyncio.Task] = set()
        self._attached = False

    def attach(self) -> None:
        """Setup Playwright event listeners for network events."""
        if self._attached:
            return
        self.page.on("request", self._on_request)
        self.page.on("response", self._on_response)
        self._attached = True
        logger.debug("Network observer listeners setup complete")

    def detach(self) -> None:
        if not self._attached:
            return
        try:
            self.page.remove_listener("request", self._on_request)
            self.page.remove_listener("response", self._on_response)
        except Exception as e:
            logger.debug(f"Failed to remove network listeners: {e}")
        self._attached = False

    def matches(self, url: str) -> bool:
        """Check if a URL belongs to the authentication traffic."""
        return any(pattern in url for pattern in self.url_patterns)

    def _on_request(self, request: Request) -> None:
        try:
            if not self.matches(request.url):
                return
            self.log.add_request(url=request.url, method=request.method)
            logger.debug(f"Auth request: {request.method} {request.url}")
        except Exception as e:
            logger.debug(f"Error processing request: {e}")

    def _on_response(self, response: Response) -> None:
        """Record a matching response, then fetch its JSON body in a task.

        The record is appended right away so responses keep arrival order;
        the body is filled in once it has been read.
        """
        try:
            if not self.matches(response.url):
                return

            record = self.log.add_response(url=response.url, status=response.status)
            logger.debug(f"Auth response: {response.status} {response.url}")

            content_type = response.headers.get('content-type', '')
            if 'json' not in content_type.lower():
                return

            task = asyncio.get_running_loop().create_task(self._read_body(response, record))
            self._body_tasks.add(task)
            task.add_done_callback(self._body_tasks.discard)
        except Exception as e:
            logger.debug(f"Error processing response: {e}")

    async def _read_body(self, response: Response, record: ResponseRecord) -> None:
        try:
            payload = await response.json()
            record.body = json.dumps(payload)[:BODY_PREVIEW_LENGTH]
        except Exception as e:
            logger.debug(f"Failed to read response body for {response.url}: {e}")

    async def flush(self) -> None:
        """Wait for outstanding response body reads."""
        if self._body_tasks:
            await asyncio.gather(*list(self._body_tasks), return_exceptions=True)

    @property
    def pending_bodies(self) -> int:
        return len(self._body_tasks)

    def __repr__(self) -> str:
        return (
            f"AuthNetworkObserver(requests={len(self.log.requests)}, "
            f"responses={len(self.log.responses)})"
        )
