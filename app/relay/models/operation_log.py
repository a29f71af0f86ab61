"""Pydantic models for the per-invocation operation log.

The operation log is a mutable record owned by a single login invocation.
It holds ordered step records plus the request, response, error and debug
entries captured by the telemetry observers. Each container is append-only
and internally ordered; ordering across containers is not guaranteed.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr


class StepStatus(str, Enum):
    """Status of a login step record."""
    STARTED = "started"
    SUCCESS = "success"
    FAILED = "failed"


class ErrorType(str, Enum):
    """Source of an error record."""
    CONSOLE_ERROR = "console_error"
    EXCEPTION = "exception"


class StepRecord(BaseModel):
    """One entry of the steps container."""

    step: int = Field(ge=1, description="Step number within the login sequence")
    action: str = Field(description="Action label")
    status: StepStatus = Field(description="Step status")
    timestamp: datetime = Field(description="When the record was appended")
    message: Optional[str] = Field(default=None, description="Optional detail message")
    url: Optional[str] = Field(default=None, description="Page URL at record time")


class RequestRecord(BaseModel):
    """Outgoing request matching the authentication URL filter."""

    url: str
    method: str
    timestamp: datetime


class ResponseRecord(BaseModel):
    """Response matching the authentication URL filter."""

    url: str
    status: int
    timestamp: datetime
    body: Optional[str] = Field(
        default=None,
        description="First 200 characters of the JSON payload, if any"
    )


class ErrorRecord(BaseModel):
    """Console error or exception captured during an invocation."""

    type: ErrorType
    message: str
    stack: Optional[str] = None
    timestamp: datetime


class DebugSnapshot(BaseModel):
    """Page state snapshot recorded at a login stage boundary."""

    stage: str
    info: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class OperationLog(BaseModel):
    """Ordered record of what happened during one invocation."""

    steps: List[StepRecord] = Field(default_factory=list)
    requests: List[RequestRecord] = Field(default_factory=list)
    responses: List[ResponseRecord] = Field(default_factory=list)
    errors: List[ErrorRecord] = Field(default_factory=list)
    debug: List[DebugSnapshot] = Field(default_factory=list)

    _last_timestamp: Optional[datetime] = PrivateAttr(default=None)

    def _stamp(self) -> datetime:
        """Return a timestamp that never goes backwards within this log."""
        now = datetime.utcnow()
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def add_step(
        self,
        step: int,
        action: str,
        status: StepStatus,
        message: Optional[str] = None,
        url: Optional[str] = None,
    ) -> StepRecord:
        record = StepRecord(
            step=step,
            action=action,
            status=status,
            timestamp=self._stamp(),
            message=message,
            url=url,
        )
        self.steps.append(record)
        return record

    def add_request(self, url: str, method: str) -> RequestRecord:
        record = RequestRecord(url=url, method=method, timestamp=self._stamp())
        self.requests.append(record)
        return record

    def add_response(self, url: str, status: int, body: Optional[str] = None) -> ResponseRecord:
        record = ResponseRecord(url=url, status=status, timestamp=self._stamp(), body=body)
        self.responses.append(record)
        return record

    def add_error(
        self,
        message: str,
        error_type: ErrorType = ErrorType.EXCEPTION,
        stack: Optional[str] = None,
    ) -> ErrorRecord:
        record = ErrorRecord(type=error_type, message=message, stack=stack, timestamp=self._stamp())
        self.errors.append(record)
        return record

    def add_debug(self, stage: str, info: Dict[str, Any]) -> DebugSnapshot:
        snapshot = DebugSnapshot(stage=stage, info=info, timestamp=self._stamp())
        self.debug.append(snapshot)
        return snapshot

    @property
    def last_step(self) -> Optional[StepRecord]:
        return self.steps[-1] if self.steps else None

    def steps_with_status(self, status: StepStatus) -> List[StepRecord]:
        return [record for record in self.steps if record.status == status]

    def get_stats(self) -> Dict[str, int]:
        return {
            'steps': len(self.steps),
            'requests': len(self.requests),
            'responses': len(self.responses),
            'errors': len(self.errors),
            'debug': len(self.debug),
        }

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (
            f"OperationLog(steps={stats['steps']}, requests={stats['requests']}, "
            f"responses={stats['responses']}, errors={stats['errors']})"
        )
