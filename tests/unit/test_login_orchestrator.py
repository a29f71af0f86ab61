"""Unit tests for the login orchestrator."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.relay.capture.telemetry import TelemetryCollector
from app.relay.login import (
    VERIFICATION_MESSAGE,
    LoginFlowConfig,
    LoginOrchestrator,
    LoginTimings,
    login,
    login_with_telemetry,
)
from app.relay.models import ErrorType, PollOutcome, StepStatus


def script_cookies(page, cookie_factory, appear_on=None, redirect_on=None,
                   redirect_url="https://x.com/home"):
    """Drive page cookies and URL from the number of cookie reads."""
    state = {'reads': 0}
    base = [cookie_factory("guest_id", "v1%3A170"), cookie_factory("ct0", "csrf-abc")]

    async def cookies():
        state['reads'] += 1
        if redirect_on is not None and state['reads'] >= redirect_on:
            page.url = redirect_url
        if appear_on is not None and state['reads'] >= appear_on:
            return base + [cookie_factory("auth_token", "token-123")]
        return list(base)

    page.context.cookies = AsyncMock(side_effect=cookies)
    return state


def step_entries(result):
    return [(s.step, s.status) for s in result.log.steps]


class TestLoginSuccess:
    """Tests for successful login sequences."""

    @pytest.mark.asyncio
    async def test_cookie_found_during_poll(self, mock_page, recording_sleep, cookie_factory):
        state = script_cookies(mock_page, cookie_factory, appear_on=5)
        orchestrator = LoginOrchestrator(sleep=recording_sleep)

        result = await orchestrator.login(mock_page, "someone", "hunter22")

        assert result.success is True
        assert result.message == "Login successful"
        assert result.auth_token == "token-123"
        assert result.csrf_token == "csrf-abc"
        assert result.completion == PollOutcome.COOKIE_FOUND
        assert result.elapsed_seconds == 5
        assert result.cookie("guest_id") is not None
        # five poll reads plus the final collection
        assert state['reads'] == 6

        last = result.log.last_step
        assert last.step == 6
        assert last.status == StepStatus.SUCCESS
        assert last.message == "auth_token found after 5 seconds"

    @pytest.mark.asyncio
    async def test_every_step_recorded_in_order(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=1)

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        expected = []
        for number in range(1, 7):
            expected += [(number, StepStatus.STARTED), (number, StepStatus.SUCCESS)]
        assert step_entries(result) == expected

        numbers = [s.step for s in result.log.steps]
        stamps = [s.timestamp for s in result.log.steps]
        assert numbers == sorted(numbers)
        assert stamps == sorted(stamps)

    @pytest.mark.asyncio
    async def test_page_interactions(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=1)

        await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        mock_page.set_default_navigation_timeout.assert_called_once_with(30000)
        mock_page.goto.assert_called_once_with(
            "https://x.com/i/flow/login", wait_until="networkidle", timeout=30000
        )
        selectors = [call.args[0] for call in mock_page.wait_for_selector.call_args_list]
        assert selectors == ['input[autocomplete="username"]', 'input[name="password"]']
        assert mock_page.wait_for_selector.call_args.kwargs == {'state': 'visible', 'timeout': 10000}

        typed = [(call.args[0], call.kwargs['delay']) for call in mock_page.keyboard.type.call_args_list]
        assert typed == [("someone", 150), ("hunter22", 150)]
        assert [call.args[0] for call in mock_page.keyboard.press.call_args_list] == ["Enter", "Enter"]

    @pytest.mark.asyncio
    async def test_pacing(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=2)

        await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert recording_sleep.calls == [
            2.0,            # app mount
            0.5, 1.0,       # username field
            3.0,            # after username submit
            0.5, 1.0,       # password field
            1.0, 1.0,       # poll
        ]

    @pytest.mark.asyncio
    async def test_cookie_found_after_redirect(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=4, redirect_on=3)

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.success is True
        assert result.completion == PollOutcome.URL_CHANGED
        assert result.url_changed is True
        assert result.final_url == "https://x.com/home"
        assert result.log.last_step.message == "auth_token found after redirect"
        assert 3.0 in recording_sleep.calls[6:]

    @pytest.mark.asyncio
    async def test_credentials_never_logged(self, mock_page, recording_sleep, cookie_factory, caplog):
        script_cookies(mock_page, cookie_factory, appear_on=1)

        with caplog.at_level(logging.DEBUG):
            result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert "hunter22" not in caplog.text
        assert "someone" not in caplog.text
        assert "hunter22" not in result.log.model_dump_json()


class TestLoginFailure:
    """Tests for failed login sequences."""

    @pytest.mark.asyncio
    async def test_wrong_credentials_wait_full_window(self, mock_page, recording_sleep, cookie_factory):
        state = script_cookies(mock_page, cookie_factory)

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "wrong")

        assert result.success is False
        assert result.auth_token is None
        assert result.message == "Login timeout - auth_token not received"
        assert result.completion == PollOutcome.TIMED_OUT
        assert result.elapsed_seconds == 30
        assert result.url_changed is False
        assert {c.name for c in result.cookies} == {"guest_id", "ct0"}
        # thirty poll reads plus the final collection
        assert state['reads'] == 31
        assert recording_sleep.calls.count(1.0) >= 30

        last = result.log.last_step
        assert last.step == 6
        assert last.status == StepStatus.FAILED
        assert last.message == "auth_token not found after 30 seconds"

    @pytest.mark.asyncio
    async def test_left_login_flow_without_cookie(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, redirect_on=3, redirect_url="https://x.com/account/access")

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.success is False
        assert result.completion == PollOutcome.URL_CHANGED
        assert result.url_changed is True
        assert result.message == "Login flow completed without auth_token"
        assert result.log.last_step.status == StepStatus.FAILED
        assert result.log.last_step.message == (
            "Left login flow at https://x.com/account/access but auth_token not found"
        )

    @pytest.mark.asyncio
    async def test_step_exception_returns_partial_log(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        mock_page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 10000ms exceeded.")

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.success is False
        assert result.error == "Timeout 10000ms exceeded."
        assert result.needs_verification is False
        assert step_entries(result) == [
            (1, StepStatus.STARTED),
            (1, StepStatus.SUCCESS),
            (2, StepStatus.STARTED),
            (2, StepStatus.FAILED),
        ]
        assert len(result.log.errors) == 1
        error = result.log.errors[0]
        assert error.type == ErrorType.EXCEPTION
        assert "TimeoutError" in error.stack
        assert {c.name for c in result.cookies} == {"guest_id", "ct0"}
        mock_page.keyboard.type.assert_not_called()

    @pytest.mark.asyncio
    async def test_navigation_failure_is_step_one(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        mock_page.goto.side_effect = Exception("net::ERR_NAME_NOT_RESOLVED")

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert step_entries(result) == [(1, StepStatus.STARTED), (1, StepStatus.FAILED)]
        assert result.log.last_step.message == "net::ERR_NAME_NOT_RESOLVED"

    @pytest.mark.asyncio
    async def test_cookie_read_failure_keeps_gathered_cookies_empty(self, mock_page, recording_sleep):
        mock_page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout")
        mock_page.context.cookies = AsyncMock(side_effect=Exception("Browser has been closed"))

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.success is False
        assert result.cookies == []

    @pytest.mark.asyncio
    async def test_poll_failure_is_step_six(self, mock_page, recording_sleep):
        mock_page.context.cookies = AsyncMock(side_effect=Exception("Browser has been closed"))

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.success is False
        assert result.log.last_step.step == 6
        assert result.log.last_step.status == StepStatus.FAILED
        assert result.error == "Browser has been closed"

    @pytest.mark.asyncio
    async def test_verification_prompt(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        field = MagicMock()
        field.click = AsyncMock()
        mock_page.wait_for_selector.side_effect = [field, PlaywrightTimeoutError("Timeout 10000ms exceeded.")]
        mock_page.inner_text.return_value = "There was unusual login activity on your account."

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.success is False
        assert result.needs_verification is True
        assert result.message == VERIFICATION_MESSAGE
        assert result.error == VERIFICATION_MESSAGE
        assert result.log.last_step.step == 4
        mock_page.inner_text.assert_called_once_with("body")

    @pytest.mark.asyncio
    async def test_password_timeout_without_prompt(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        field = MagicMock()
        field.click = AsyncMock()
        mock_page.wait_for_selector.side_effect = [field, PlaywrightTimeoutError("Timeout 10000ms exceeded.")]
        mock_page.inner_text.return_value = "Something went wrong. Try again."

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.needs_verification is False
        assert result.message is None
        assert result.error == "Timeout 10000ms exceeded."

    @pytest.mark.asyncio
    async def test_custom_flow(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        flow = LoginFlowConfig(
            session_cookie="sid",
            timings=LoginTimings(poll_attempts=5, poll_interval=2.0, hydration_pause=0),
        )

        result = await LoginOrchestrator(flow, sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.message == "Login timeout - sid not received"
        assert result.elapsed_seconds == 10
        assert result.log.last_step.message == "sid not found after 10 seconds"


class TestLoginTelemetry:
    """Tests for login with telemetry attached."""

    @staticmethod
    def wire_page_events(page):
        request = MagicMock()
        request.url = "https://api.x.com/1.1/onboarding/task.json?flow_name=login"
        request.method = "POST"

        response = MagicMock()
        response.url = request.url
        response.status = 200
        response.headers = {'content-type': 'application/json; charset=utf-8'}
        response.json = AsyncMock(return_value={"flow_token": "g;1", "status": "success"})

        console = MagicMock()
        console.type = "error"
        console.text = "Failed to load resource: the server responded with a status of 400 ()"

        async def goto(*args, **kwargs):
            page.emit("request", request)
            page.emit("response", response)
            page.emit("console", console)

        page.goto = AsyncMock(side_effect=goto)
        page.evaluate.return_value = {'inputCount': 1, 'hasReactRoot': True}

    @pytest.mark.asyncio
    async def test_telemetry_recorded_in_result_log(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=1)
        self.wire_page_events(mock_page)
        collector = TelemetryCollector()

        result = await LoginOrchestrator(sleep=recording_sleep).login_with_telemetry(
            mock_page, "someone", "hunter22", collector=collector
        )

        assert result.success is True
        assert len(result.log.requests) == 1
        assert result.log.requests[0].method == "POST"
        assert result.log.responses[0].body == '{"flow_token": "g;1", "status": "success"}'
        assert [e.type for e in result.log.errors] == [ErrorType.CONSOLE_ERROR]
        assert [d.stage for d in result.log.debug] == ["after_mount", "after_next"]
        assert not collector.is_attached
        assert all(handlers == [] for handlers in mock_page.handlers.values())

    @pytest.mark.asyncio
    async def test_telemetry_kept_on_failure(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        self.wire_page_events(mock_page)
        mock_page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 10000ms exceeded.")

        result = await LoginOrchestrator(sleep=recording_sleep).login_with_telemetry(
            mock_page, "someone", "hunter22"
        )

        assert result.success is False
        assert len(result.log.requests) == 1
        assert {e.type for e in result.log.errors} == {ErrorType.EXCEPTION, ErrorType.CONSOLE_ERROR}
        assert [d.stage for d in result.log.debug] == ["after_mount"]

    @pytest.mark.asyncio
    async def test_failure_errors_follow_capture_order(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory)
        self.wire_page_events(mock_page)
        mock_page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 10000ms exceeded.")

        result = await LoginOrchestrator(sleep=recording_sleep).login_with_telemetry(
            mock_page, "someone", "hunter22"
        )

        log = result.log
        assert [e.type for e in log.errors] == [ErrorType.CONSOLE_ERROR, ErrorType.EXCEPTION]
        for records in (log.steps, log.requests, log.responses, log.errors, log.debug):
            stamps = [record.timestamp for record in records]
            assert stamps == sorted(stamps)
        assert log.errors[0].timestamp <= log.steps[-1].timestamp

    @pytest.mark.asyncio
    async def test_plain_login_records_no_telemetry(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=1)
        self.wire_page_events(mock_page)

        result = await LoginOrchestrator(sleep=recording_sleep).login(mock_page, "someone", "hunter22")

        assert result.log.requests == []
        assert result.log.debug == []
        mock_page.evaluate.assert_not_called()


class TestModuleFunctions:
    """Tests for the package-level login helpers."""

    @pytest.mark.asyncio
    async def test_login(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=1)

        result = await login(mock_page, "someone", "hunter22", sleep=recording_sleep)

        assert result.success is True
        assert result.auth_token == "token-123"

    @pytest.mark.asyncio
    async def test_login_with_telemetry(self, mock_page, recording_sleep, cookie_factory):
        script_cookies(mock_page, cookie_factory, appear_on=1)
        TestLoginTelemetry.wire_page_events(mock_page)

        result = await login_with_telemetry(mock_page, "someone", "hunter22", sleep=recording_sleep)

        assert result.success is True
        assert len(result.log.responses) == 1
