"""Result models returned by render and login operations."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .cookies import SessionCookie
from .operation_log import OperationLog


class PollOutcome(str, Enum):
    """How the session poll loop ended."""
    COOKIE_FOUND = "cookie_found"
    URL_CHANGED = "url_changed"
    TIMED_OUT = "timed_out"


class RenderResult(BaseModel):
    """Sanitized page content returned by the page renderer."""

    success: bool = Field(default=True)
    content: str = Field(description="Sanitized HTML")
    url: str = Field(description="Final page URL after redirects")
    status: int = Field(default=200)


class LoginResult(BaseModel):
    """Outcome of one login attempt.

    Success is decided only by the presence of the session cookie; a URL
    change is reported separately through ``completion`` and ``url_changed``.
    """

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    cookies: List[SessionCookie] = Field(default_factory=list)
    auth_token: Optional[str] = None
    csrf_token: Optional[str] = None
    final_url: Optional[str] = None
    completion: Optional[PollOutcome] = Field(
        default=None,
        description="Poll loop outcome, None if the attempt aborted earlier"
    )
    elapsed_seconds: Optional[float] = None
    url_changed: bool = False
    needs_verification: bool = False
    log: OperationLog = Field(default_factory=OperationLog)

    @model_validator(mode='after')
    def validate_success_has_token(self) -> 'LoginResult':
        """A successful login always carries the session token."""
        if self.success and not self.auth_token:
            raise ValueError("successful login requires a non-empty auth_token")
        return self

    def cookie(self, name: str) -> Optional[SessionCookie]:
        """Return the first cookie called ``name`` that carries a value."""
        for cookie in self.cookies:
            if cookie.name == name and cookie.has_value:
                return cookie
        return None
