"""Shared test fixtures and configuration for Page Relay tests."""

import sys
from pathlib import Path
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.relay.config import reset_config


class RecordingSleep:
    """Sleep replacement that records requested durations without waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


def make_cookie(name: str, value: str = "value", domain: str = ".x.com") -> Dict:
    """Playwright-style cookie dict."""
    return {
        'name': name,
        'value': value,
        'domain': domain,
        'path': '/',
        'expires': -1,
        'httpOnly': True,
        'secure': True,
        'sameSite': 'None',
    }


def make_page(url: str = "https://x.com/i/flow/login") -> MagicMock:
    """Mock Playwright page with the async surface used by the relay."""
    page = MagicMock()
    page.url = url
    page.goto = AsyncMock(return_value=None)
    page.wait_for_load_state = AsyncMock(return_value=None)
    page.content = AsyncMock(return_value="<html><body>ok</body></html>")
    page.screenshot = AsyncMock(return_value=b"\x89PNG\r\n\x1a\nfake")
    page.evaluate = AsyncMock(return_value={})
    page.inner_text = AsyncMock(return_value="")
    page.close = AsyncMock()

    field = MagicMock()
    field.click = AsyncMock()
    page.wait_for_selector = AsyncMock(return_value=field)

    page.keyboard = MagicMock()
    page.keyboard.type = AsyncMock()
    page.keyboard.press = AsyncMock()

    page.context = MagicMock()
    page.context.cookies = AsyncMock(return_value=[])

    handlers: Dict[str, list] = {}
    page.handlers = handlers
    page.on = MagicMock(side_effect=lambda event, handler: handlers.setdefault(event, []).append(handler))

    def remove_listener(event, handler):
        if handler in handlers.get(event, []):
            handlers[event].remove(handler)

    page.remove_listener = MagicMock(side_effect=remove_listener)

    def emit(event, payload):
        for handler in list(handlers.get(event, [])):
            handler(payload)

    page.emit = emit
    return page


@pytest.fixture
def recording_sleep():
    """Sleep coroutine that returns immediately."""
    return RecordingSleep()


@pytest.fixture
def mock_page():
    """Mock page sitting on the login flow URL."""
    return make_page()


@pytest.fixture
def page_factory():
    """Builder for additional mock pages."""
    return make_page


@pytest.fixture
def cookie_factory():
    """Builder for Playwright cookie dicts."""
    return make_cookie


@pytest.fixture(autouse=True)
def clean_relay_env(monkeypatch):
    """Isolate tests from RELAY_ENV and the cached global config."""
    monkeypatch.delenv("RELAY_ENV", raising=False)
    reset_config()
    yield
    reset_config()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
