"""Login flow configuration.

Selectors, cookie names and pacing for the credential login sequence. The
defaults target the X web login flow.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class LoginTimings(BaseModel):
    """Pauses and timeouts used by the login sequence."""

    navigation_timeout_ms: int = Field(default=30000, ge=1000)
    selector_timeout_ms: int = Field(default=10000, ge=100)
    hydration_pause: float = Field(default=2.0, ge=0, description="Seconds to let the login app mount")
    pre_type_pause: float = Field(default=0.5, ge=0, description="Seconds between click and typing")
    keystroke_delay_ms: int = Field(default=150, ge=0)
    post_type_pause: float = Field(default=1.0, ge=0)
    post_username_pause: float = Field(default=3.0, ge=0, description="Seconds after submitting the username")
    poll_attempts: int = Field(default=30, ge=1, le=600)
    poll_interval: float = Field(default=1.0, gt=0)
    redirect_settle: float = Field(
        default=3.0,
        ge=0,
        description="Seconds to wait after leaving the login flow before reading cookies again"
    )

    @property
    def poll_window_seconds(self) -> float:
        return self.poll_attempts * self.poll_interval


class LoginFlowConfig(BaseModel):
    """Target site description for the login sequence."""

    login_url: str = Field(default="https://x.com/i/flow/login")
    username_selector: str = Field(default='input[autocomplete="username"]')
    password_selector: str = Field(default='input[name="password"]')
    submit_key: str = Field(default="Enter")
    session_cookie: str = Field(default="auth_token", description="Cookie whose presence means success")
    csrf_cookie: str = Field(default="ct0")
    login_path_markers: List[str] = Field(default_factory=lambda: ['/login', '/flow'])
    verification_markers: List[str] = Field(default_factory=lambda: ['unusual', 'verify', 'phone'])
    blocked_hosts: List[str] = Field(
        default_factory=lambda: ['google.com', 'gstatic.com', 'googleapis.com'],
        description="Hosts aborted on the login page (third-party sign-in widgets)"
    )
    timings: LoginTimings = Field(default_factory=LoginTimings)

    @field_validator('login_path_markers')
    @classmethod
    def validate_markers(cls, v):
        if not v:
            raise ValueError("At least one login path marker is required")
        return v

    @field_validator('session_cookie')
    @classmethod
    def validate_session_cookie(cls, v):
        if not v or not v.strip():
            raise ValueError("session_cookie cannot be empty")
        return v.strip()
