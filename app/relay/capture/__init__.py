"""Browser capture components for page relay.

This package provides the shared browser factory, the page renderer and
screenshot capturer, and the observers used to collect login telemetry.
"""

from .browser_factory import BrowserConfig, BrowserFactory, close_quietly
from .console_observer import BENIGN_CONSOLE_PATTERNS, ConsoleErrorObserver
from .cookie_collector import SessionCookieCollector, find_cookie
from .network_observer import AUTH_URL_PATTERNS, AuthNetworkObserver
from .page_renderer import NavigationConfig, PageRenderer, WaitStrategy, navigate
from .sanitizer import sanitize_html
from .screenshot import ScreenshotCapturer
from .telemetry import TelemetryCollector

__all__ = [
    'BrowserConfig',
    'BrowserFactory',
    'close_quietly',
    'BENIGN_CONSOLE_PATTERNS',
    'ConsoleErrorObserver',
    'SessionCookieCollector',
    'find_cookie',
    'AUTH_URL_PATTERNS',
    'AuthNetworkObserver',
    'NavigationConfig',
    'PageRenderer',
    'WaitStrategy',
    'navigate',
    'sanitize_html',
    'ScreenshotCapturer',
    'TelemetryCollector',
]
