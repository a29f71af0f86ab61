"""Unit tests for authentication network observer."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.relay.capture.network_observer import AUTH_URL_PATTERNS, AuthNetworkObserver
from app.relay.models.operation_log import OperationLog


def make_request(url, method="POST"):
    request = MagicMock()
    request.url = url
    request.method = method
    return request


def make_response(url, status=200, content_type="application/json", payload=None):
    response = MagicMock()
    response.url = url
    response.status = status
    response.headers = {"content-type": content_type}
    response.json = AsyncMock(return_value=payload if payload is not None else {"flow_token": "g;1"})
    return response


class TestAuthNetworkObserver:
    """Tests for AuthNetworkObserver class."""

    @pytest.fixture
    def log(self):
        return OperationLog()

    @pytest.fixture
    def observer(self, mock_page, log):
        observer = AuthNetworkObserver(mock_page, log)
        observer.attach()
        return observer

    def test_attach_registers_listeners(self, observer, mock_page):
        assert len(mock_page.handlers["request"]) == 1
        assert len(mock_page.handlers["response"]) == 1

    def test_attach_is_idempotent(self, observer, mock_page):
        observer.attach()

        assert len(mock_page.handlers["request"]) == 1

    def test_detach_removes_listeners(self, observer, mock_page):
        observer.detach()

        assert mock_page.handlers["request"] == []
        assert mock_page.handlers["response"] == []

    @pytest.mark.parametrize("url", [
        "https://api.x.com/1.1/onboarding/task.json?flow_name=login",
        "https://x.com/i/api/1.1/onboarding/sso_init.json",
        "https://x.com/i/flow/login",
        "https://api.x.com/1.1/guest/activate.json",
        "https://x.com/account/login_verification",
        "https://x.com/sessions",
    ])
    def test_records_matching_requests(self, observer, mock_page, log, url):
        mock_page.emit("request", make_request(url))

        assert [r.url for r in log.requests] == [url]
        assert log.requests[0].method == "POST"

    @pytest.mark.parametrize("url", [
        "https://abs.twimg.com/responsive-web/client-web/main.js",
        "https://x.com/home",
        "https://accounts.google.com/gsi/client",
        "https://x.com/i/api/graphql/abc/HomeTimeline",
    ])
    def test_ignores_other_requests(self, observer, mock_page, log, url):
        mock_page.emit("request", make_request(url, method="GET"))

        assert log.requests == []

    @pytest.mark.asyncio
    async def test_response_recorded_immediately_with_body_later(self, observer, mock_page, log):
        url = "https://api.x.com/1.1/onboarding/task.json"
        payload = {"flow_token": "g;123", "subtasks": [{"subtask_id": "LoginEnterPassword"}] * 20}

        mock_page.emit("response", make_response(url, payload=payload))

        assert len(log.responses) == 1
        assert log.responses[0].status == 200
        assert log.responses[0].body is None

        await observer.flush()

        assert log.responses[0].body == json.dumps(payload)[:200]
        assert len(log.responses[0].body) == 200

    @pytest.mark.asyncio
    async def test_non_json_response_has_no_body(self, observer, mock_page, log):
        response = make_response("https://x.com/i/flow/login", content_type="text/html")

        mock_page.emit("response", response)
        await observer.flush()

        assert log.responses[0].body is None
        response.json.assert_not_called()

    @pytest.mark.asyncio
    async def test_body_parse_failure_is_swallowed(self, observer, mock_page, log):
        response = make_response("https://api.x.com/1.1/onboarding/task.json")
        response.json.side_effect = Exception("Unexpected token <")

        mock_page.emit("response", response)
        await observer.flush()

        assert len(log.responses) == 1
        assert log.responses[0].body is None

    @pytest.mark.asyncio
    async def test_responses_keep_arrival_order(self, observer, mock_page, log):
        slow = make_response("https://api.x.com/1.1/onboarding/task.json?step=1")

        async def slow_json():
            await asyncio.sleep(0.01)
            return {"step": 1}

        slow.json = AsyncMock(side_effect=slow_json)
        fast = make_response("https://api.x.com/1.1/onboarding/task.json?step=2", payload={"step": 2})

        mock_page.emit("response", slow)
        mock_page.emit("response", fast)
        await observer.flush()

        assert [r.url.endswith("step=1") for r in log.responses] == [True, False]
        assert log.responses[0].body == '{"step": 1}'
        assert observer.pending_bodies == 0

    def test_handler_errors_do_not_escape(self, observer, mock_page, log):
        class DetachedRequest:
            @property
            def url(self):
                raise RuntimeError("Target page, context or browser has been closed")

        mock_page.emit("request", DetachedRequest())

        assert log.requests == []

    def test_custom_patterns(self, mock_page, log):
        observer = AuthNetworkObserver(mock_page, log, url_patterns=["/custom/"])
        observer.attach()

        mock_page.emit("request", make_request("https://x.com/custom/path"))
        mock_page.emit("request", make_request("https://x.com/i/flow/login"))

        assert [r.url for r in log.requests] == ["https://x.com/custom/path"]

    def test_default_patterns(self):
        assert '/i/api/1.1/onboarding' in AUTH_URL_PATTERNS
        assert '/guest/activate' in AUTH_URL_PATTERNS
