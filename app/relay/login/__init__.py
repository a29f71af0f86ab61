"""Credential login flow with session cookie harvesting.

Example:
    async with factory.page(blocked_hosts=flow.blocked_hosts) as page:
        result = await login(page, "user", "secret", flow=flow)
        if result.success:
            print(result.auth_token)
"""

import asyncio
from typing import Optional

from playwright.async_api import Page

from ..models.results import LoginResult
from .flow import LoginFlowConfig, LoginTimings
from .orchestrator import LoginOrchestrator, VERIFICATION_MESSAGE
from .polling import PollResult, SessionPoller


async def login(
    page: Page,
    username: str,
    password: str,
    flow: Optional[LoginFlowConfig] = None,
    sleep=asyncio.sleep,
) -> LoginResult:
    """Run one login attempt on ``page``."""
    return await LoginOrchestrator(flow, sleep=sleep).login(page, username, password)


async def login_with_telemetry(
    page: Page,
    username: str,
    password: str,
    flow: Optional[LoginFlowConfig] = None,
    sleep=asyncio.sleep,
) -> LoginResult:
    """Run one login attempt and attach request, response and console telemetry."""
    return await LoginOrchestrator(flow, sleep=sleep).login_with_telemetry(page, username, password)


__all__ = [
    'login',
    'login_with_telemetry',
    'LoginFlowConfig',
    'LoginTimings',
    'LoginOrchestrator',
    'VERIFICATION_MESSAGE',
    'PollResult',
    'SessionPoller',
]
