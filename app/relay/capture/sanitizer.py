"""HTML sanitization for relayed page content.

Rendered markup is returned to callers without the ability to run scripts:
script elements and inline event handler attributes are removed.
"""

import logging
import re

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


SCRIPT_ELEMENT_RE = re.compile(r'<script\b[^>]*>.*?</script\s*>', re.IGNORECASE | re.DOTALL)
SCRIPT_TAG_RE = re.compile(r'</?script\b[^>]*>?', re.IGNORECASE)
ANY_TAG_RE = re.compile(r'<[^>]*>?')

HTML_PARSER = "html.parser"
EVENT_HANDLER_PREFIX = 'on'
MAX_PASSES = 50


def _is_event_handler(name: str) -> bool:
    return name.lower().startswith(EVENT_HANDLER_PREFIX)


def _sanitize_once(html: str) -> str:
    html = SCRIPT_ELEMENT_RE.sub('', html)
    html = SCRIPT_TAG_RE.sub('', html)

    soup = BeautifulSoup(html, HTML_PARSER)

    for element in soup(["script"]):
        element.decompose()

    for tag in soup.find_all(True):
        handlers = [name for name in tag.attrs if _is_event_handler(name)]
        for name in handlers:
            del tag[name]

    return str(soup)


def sanitize_html(html: str) -> str:
    """Remove script elements and inline event handlers from markup.

    Removal is repeated until the output stops changing so that fragments
    reassembled by a previous pass (``<scr<script></script>ipt>``) are
    removed as well. The result is idempotent.

    Args:
        html: Raw page markup

    Returns:
        Markup with no script elements and no on* attributes
    """
    if not html:
        return ''

    for _ in range(MAX_PASSES):
        cleaned = _sanitize_once(html)
        if cleaned == html:
            return cleaned
        html = cleaned

    logger.warning("Sanitizer did not converge, stripping all tags")
    return ANY_TAG_RE.sub('', html)


def contains_unsafe_markup(html: str) -> bool:
    """Check whether markup still carries script tags or event handlers."""
    if not html:
        return False
    if SCRIPT_TAG_RE.search(html):
        return True
    soup = BeautifulSoup(html, HTML_PARSER)
    return any(
        _is_event_handler(name)
        for tag in soup.find_all(True)
        for name in tag.attrs
    )
