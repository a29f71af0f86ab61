"""Login orchestrator: drives the credential login sequence on a page.

The sequence has six steps:

1. Navigate to the login page and let the app mount
2. Enter the username
3. Submit the username
4. Enter the password
5. Submit the password
6. Poll for the session cookie

Every step appends a ``started`` record to the operation log and a
``success`` record when it completes. A failing step aborts the sequence;
the failure is recorded and returned as a LoginResult, never raised.
"""

import asyncio
import logging
import traceback
from typing import Awaitable, Callable, List, Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from ..capture.cookie_collector import SessionCookieCollector, find_cookie
from ..capture.telemetry import TelemetryCollector
from ..errors import LoginStepError, VerificationRequiredError
from ..models.cookies import SessionCookie
from ..models.operation_log import ErrorType, OperationLog, StepStatus
from ..models.results import LoginResult, PollOutcome
from .flow import LoginFlowConfig
from .polling import PollResult, SessionPoller

logger = logging.getLogger(__name__)


Sleep = Callable[[float], Awaitable[None]]

VERIFICATION_MESSAGE = "Additional verification required (phone/email)"


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}"


def _page_url(page: Page) -> Optional[str]:
    try:
        return page.url
    except Exception:
        return None


def _format_stack(error: BaseException) -> str:
    return ''.join(traceback.format_exception(type(error), error, error.__traceback__))


class LoginOrchestrator:
    """Runs the login sequence against one page."""

    STEP_NAVIGATE = (1, "Navigate to login page")
    STEP_USERNAME = (2, "Enter username")
    STEP_SUBMIT_USERNAME = (3, "Submit username")
    STEP_PASSWORD = (4, "Enter password")
    STEP_SUBMIT_PASSWORD = (5, "Submit login")
    STEP_WAIT_SESSION = (6, "Wait for auth")

    def __init__(self, flow: Optional[LoginFlowConfig] = None, sleep: Sleep = asyncio.sleep):
        """Initialize login orchestrator.

        Args:
            flow: Target site configuration
            sleep: Sleep coroutine used for every pause, replaceable in tests
        """
        self.flow = flow or LoginFlowConfig()
        self.sleep = sleep

    async def login(
        self,
        page: Page,
        username: str,
        password: str,
        telemetry: Optional[TelemetryCollector] = None,
        log: Optional[OperationLog] = None,
    ) -> LoginResult:
        """Log in on ``page`` and harvest the session cookies.

        Args:
            page: Page owned by the caller for the length of the attempt
            username: Account identifier
            password: Account password
            telemetry: Attached collector receiving debug snapshots
            log: Operation log to append to; a new one is created if omitted

        Returns:
            LoginResult; success only when the session cookie is present
        """
        log = log if log is not None else OperationLog()
        cookies = SessionCookieCollector(page)
        logger.info(f"Starting login (username length={len(username)}, password length={len(password)})")

        try:
            await self._run_step(log, page, self.STEP_NAVIGATE, lambda: self._open_login_page(page))
            if telemetry is not None:
                await telemetry.snapshot("after_mount")

            await self._run_step(
                log, page, self.STEP_USERNAME,
                lambda: self._fill_field(page, self.flow.username_selector, username),
            )
            await self._run_step(log, page, self.STEP_SUBMIT_USERNAME, lambda: self._submit_username(page))
            if telemetry is not None:
                await telemetry.snapshot("after_next")

            await self._run_step(log, page, self.STEP_PASSWORD, lambda: self._enter_password(page, password))
            await self._run_step(
                log, page, self.STEP_SUBMIT_PASSWORD,
                lambda: page.keyboard.press(self.flow.submit_key),
            )

            poll_result, final_cookies = await self._wait_for_session(log, page, cookies)

        except LoginStepError as e:
            return await self._failure_result(page, log, cookies, e)

        return self._build_result(page, log, poll_result, final_cookies)

    async def login_with_telemetry(
        self,
        page: Page,
        username: str,
        password: str,
        collector: Optional[TelemetryCollector] = None,
    ) -> LoginResult:
        """Run ``login`` with telemetry observers attached to the page.

        Observers and login steps append to the same log, so every container
        stays in timestamp order.
        """
        collector = collector or TelemetryCollector()
        log = OperationLog()
        collector.attach(page, log)

        try:
            result = await self.login(page, username, password, telemetry=collector, log=log)
        finally:
            try:
                await collector.flush()
            finally:
                collector.detach()

        logger.debug(f"Telemetry captured: {log!r}")
        return result

    async def _run_step(
        self,
        log: OperationLog,
        page: Page,
        step: tuple,
        operation: Callable[[], Awaitable[object]],
    ) -> None:
        number, action = step
        logger.info(f"Step {number}: {action}")
        log.add_step(number, action, StepStatus.STARTED, url=_page_url(page))
        try:
            await operation()
        except Exception as e:
            raise LoginStepError(number, action, str(e) or type(e).__name__) from e
        log.add_step(number, action, StepStatus.SUCCESS, url=_page_url(page))

    async def _open_login_page(self, page: Page) -> None:
        timings = self.flow.timings
        page.set_default_navigation_timeout(timings.navigation_timeout_ms)
        await page.goto(self.flow.login_url, wait_until="networkidle", timeout=timings.navigation_timeout_ms)
        await self.sleep(timings.hydration_pause)

    async def _fill_field(self, page: Page, selector: str, value: str) -> None:
        timings = self.flow.timings
        field = await page.wait_for_selector(selector, state="visible", timeout=timings.selector_timeout_ms)
        await field.click()
        await self.sleep(timings.pre_type_pause)
        await page.keyboard.type(value, delay=timings.keystroke_delay_ms)
        await self.sleep(timings.post_type_pause)

    async def _submit_username(self, page: Page) -> None:
        await page.keyboard.press(self.flow.submit_key)
        await self.sleep(self.flow.timings.post_username_pause)

    async def _enter_password(self, page: Page, password: str) -> None:
        try:
            await self._fill_field(page, self.flow.password_selector, password)
        except PlaywrightTimeoutError as e:
            if await self._verification_requested(page):
                raise VerificationRequiredError(VERIFICATION_MESSAGE) from e
            raise

    async def _verification_requested(self, page: Page) -> bool:
        """Check the page text for a phone/email verification prompt."""
        try:
            body_text = (await page.inner_text("body")).lower()
        except Exception as e:
            logger.debug(f"Could not read page text: {e}")
            return False
        return any(marker in body_text for marker in self.flow.verification_markers)

    async def _wait_for_session(
        self,
        log: OperationLog,
        page: Page,
        cookies: SessionCookieCollector,
    ):
        number, action = self.STEP_WAIT_SESSION
        timings = self.flow.timings
        logger.info(f"Step {number}: {action}")
        log.add_step(number, action, StepStatus.STARTED, url=_page_url(page))

        poller = SessionPoller(
            read_cookies=cookies.collect,
            read_url=lambda: page.url,
            cookie_name=self.flow.session_cookie,
            login_path_markers=self.flow.login_path_markers,
            max_attempts=timings.poll_attempts,
            interval=timings.poll_interval,
            redirect_settle=timings.redirect_settle,
            sleep=self.sleep,
        )
        try:
            poll_result = await poller.poll()
            final_cookies = await cookies.collect()
        except Exception as e:
            raise LoginStepError(number, action, str(e) or type(e).__name__) from e

        name = self.flow.session_cookie
        session = find_cookie(final_cookies, name)

        if session is not None:
            if poll_result.outcome == PollOutcome.COOKIE_FOUND:
                message = f"{name} found after {_format_seconds(poll_result.elapsed_seconds)} seconds"
            elif poll_result.outcome == PollOutcome.URL_CHANGED:
                message = f"{name} found after redirect"
            else:
                message = f"{name} found on final check"
            log.add_step(number, action, StepStatus.SUCCESS, message=message, url=_page_url(page))
        elif poll_result.outcome == PollOutcome.URL_CHANGED:
            log.add_step(
                number, action, StepStatus.FAILED,
                message=f"Left login flow at {poll_result.final_url} but {name} not found",
                url=_page_url(page),
            )
        elif poll_result.outcome == PollOutcome.COOKIE_FOUND:
            log.add_step(
                number, action, StepStatus.FAILED,
                message=f"{name} disappeared before final check",
                url=_page_url(page),
            )
        else:
            log.add_step(
                number, action, StepStatus.FAILED,
                message=f"{name} not found after {_format_seconds(timings.poll_window_seconds)} seconds",
                url=_page_url(page),
            )

        return poll_result, final_cookies

    def _build_result(
        self,
        page: Page,
        log: OperationLog,
        poll_result: PollResult,
        cookies: List[SessionCookie],
    ) -> LoginResult:
        name = self.flow.session_cookie
        session = find_cookie(cookies, name)
        csrf = find_cookie(cookies, self.flow.csrf_cookie)
        final_url = _page_url(page)
        url_changed = final_url is not None and not any(
            marker in final_url for marker in self.flow.login_path_markers
        )

        common = dict(
            cookies=cookies,
            final_url=final_url,
            completion=poll_result.outcome,
            elapsed_seconds=poll_result.elapsed_seconds,
            url_changed=url_changed,
            log=log,
        )

        if session is not None:
            logger.info("Login successful")
            return LoginResult(
                success=True,
                message="Login successful",
                auth_token=session.value,
                csrf_token=csrf.value if csrf else None,
                **common,
            )

        if poll_result.outcome == PollOutcome.TIMED_OUT:
            message = f"Login timeout - {name} not received"
        else:
            message = f"Login flow completed without {name}"
        logger.warning(f"Login failed: {message}")
        return LoginResult(success=False, message=message, **common)

    async def _failure_result(
        self,
        page: Page,
        log: OperationLog,
        cookies: SessionCookieCollector,
        error: LoginStepError,
    ) -> LoginResult:
        cause = error.__cause__ or error
        logger.error(f"Login step {error.step} ({error.action}) failed: {error.message}")

        log.add_step(error.step, error.action, StepStatus.FAILED, message=error.message, url=_page_url(page))
        log.add_error(error.message, error_type=ErrorType.EXCEPTION, stack=_format_stack(cause))

        needs_verification = isinstance(cause, VerificationRequiredError)
        gathered = await cookies.collect_quietly()

        return LoginResult(
            success=False,
            message=VERIFICATION_MESSAGE if needs_verification else None,
            error=error.message,
            cookies=gathered,
            final_url=_page_url(page),
            needs_verification=needs_verification,
            log=log,
        )
