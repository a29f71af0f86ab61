"""Data models for page relay operations."""

from .cookies import SessionCookie
from .operation_log import (
    DebugSnapshot,
    ErrorRecord,
    ErrorType,
    OperationLog,
    RequestRecord,
    ResponseRecord,
    StepRecord,
    StepStatus,
)
from .results import LoginResult, PollOutcome, RenderResult

__all__ = [
    'SessionCookie',
    'DebugSnapshot',
    'ErrorRecord',
    'ErrorType',
    'OperationLog',
    'RequestRecord',
    'ResponseRecord',
    'StepRecord',
    'StepStatus',
    'LoginResult',
    'PollOutcome',
    'RenderResult',
]
