"""Session cookie model converted from Playwright cookie dictionaries."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SessionCookie(BaseModel):
    """Cookie harvested from a browser context.

    Values are kept intact: harvested session cookies are the product
    returned to the caller.
    """

    name: str = Field(description="Cookie name")
    value: str = Field(default="", description="Cookie value")
    domain: str = Field(default="", description="Cookie domain")
    path: str = Field(default="/", description="Cookie path")
    expires: Optional[datetime] = Field(
        default=None,
        description="Expiration time, None for session cookies"
    )
    secure: bool = Field(default=False, description="Secure flag")
    http_only: bool = Field(default=False, description="HttpOnly flag")
    same_site: Optional[str] = Field(
        default=None,
        description="SameSite attribute (Strict, Lax, None)"
    )

    @classmethod
    def from_playwright_cookie(cls, cookie: dict) -> "SessionCookie":
        """Create SessionCookie from a Playwright cookie dict."""
        expires_raw = cookie.get('expires', -1)
        expires = None
        if expires_raw is not None and expires_raw != -1 and expires_raw > 0:
            expires = datetime.utcfromtimestamp(expires_raw)

        return cls(
            name=cookie.get('name', ''),
            value=cookie.get('value') or '',
            domain=cookie.get('domain', ''),
            path=cookie.get('path', '/'),
            expires=expires,
            secure=cookie.get('secure', False),
            http_only=cookie.get('httpOnly', False),
            same_site=cookie.get('sameSite'),
        )

    @property
    def is_session(self) -> bool:
        """Check if cookie expires with the browser session."""
        return self.expires is None

    @property
    def has_value(self) -> bool:
        return bool(self.value)
