"""Session poller: waits for the session cookie after credentials are submitted.

The poller is a small state machine. Every attempt sleeps one interval and
then inspects the browser:

* session cookie present  -> ``COOKIE_FOUND``
* URL left the login flow -> ``URL_CHANGED`` (cookies re-read after a settle pause)
* otherwise               -> next attempt, until ``max_attempts`` -> ``TIMED_OUT``
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from ..capture.cookie_collector import find_cookie
from ..models.cookies import SessionCookie
from ..models.results import PollOutcome

logger = logging.getLogger(__name__)


CookieReader = Callable[[], Awaitable[List[SessionCookie]]]
UrlReader = Callable[[], str]
Sleep = Callable[[float], Awaitable[None]]


class PollResult:
    """Terminal state of a poll run."""

    def __init__(
        self,
        outcome: PollOutcome,
        attempts: int,
        elapsed_seconds: float,
        cookie: Optional[SessionCookie] = None,
        final_url: Optional[str] = None,
    ):
        self.outcome = outcome
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        self.cookie = cookie
        self.final_url = final_url

    @property
    def cookie_found(self) -> bool:
        return self.cookie is not None

    def __repr__(self) -> str:
        return (
            f"PollResult(outcome={self.outcome.value}, attempts={self.attempts}, "
            f"elapsed={self.elapsed_seconds}s, cookie={self.cookie_found})"
        )


class SessionPoller:
    """Bounded poll loop for the session cookie."""

    def __init__(
        self,
        read_cookies: CookieReader,
        read_url: UrlReader,
        cookie_name: str,
        login_path_markers: Iterable[str],
        max_attempts: int = 30,
        interval: float = 1.0,
        redirect_settle: float = 0.0,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize session poller.

        Args:
            read_cookies: Coroutine returning the current cookies
            read_url: Callable returning the current page URL
            cookie_name: Session cookie to look for
            login_path_markers: URL fragments that mean "still in the login flow"
            max_attempts: Upper bound on loop iterations
            interval: Seconds slept before each attempt
            redirect_settle: Seconds slept before re-reading cookies after a URL change
            sleep: Sleep coroutine, replaceable in tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.read_cookies = read_cookies
        self.read_url = read_url
        self.cookie_name = cookie_name
        self.login_path_markers = list(login_path_markers)
        self.max_attempts = max_attempts
        self.interval = interval
        self.redirect_settle = redirect_settle
        self.sleep = sleep

    def in_login_flow(self, url: str) -> bool:
        return any(marker in url for marker in self.login_path_markers)

    async def poll(self) -> PollResult:
        """Run the loop until a terminal outcome.

        Cookie and URL read failures propagate to the caller.
        """
        for attempt in range(1, self.max_attempts + 1):
            await self.sleep(self.interval)
            elapsed = attempt * self.interval

            cookie = find_cookie(await self.read_cookies(), self.cookie_name)
            if cookie is not None:
                logger.info(f"{self.cookie_name} found after {elapsed:g}s")
                return PollResult(PollOutcome.COOKIE_FOUND, attempt, elapsed, cookie, self.read_url())

            current_url = self.read_url()
            if not self.in_login_flow(current_url):
                logger.info(f"URL changed to: {current_url}")
                if self.redirect_settle > 0:
                    await self.sleep(self.redirect_settle)
                cookie = find_cookie(await self.read_cookies(), self.cookie_name)
                return PollResult(PollOutcome.URL_CHANGED, attempt, elapsed, cookie, self.read_url())

            if attempt % 10 == 0:
                logger.info(f"Still waiting for {self.cookie_name}... {elapsed:g}s")

        elapsed = self.max_attempts * self.interval
        logger.warning(f"{self.cookie_name} not found after {elapsed:g}s")
        return PollResult(PollOutcome.TIMED_OUT, self.max_attempts, elapsed, None, self.read_url())
