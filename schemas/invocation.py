"""
Invocation Schemas

Snapshots handed to the lifecycle hooks by the host runtime.
Owned by the caller - the lifecycle only reads them.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LambdaInvokeEventHeaders(BaseModel):
    """Trace headers supplied with a direct invocation."""
    model_config = ConfigDict(frozen=True)

    trace_id: str = ""
    parent_id: str = ""


class InvocationStartDetails(BaseModel):
    """
    What the host knows when an invocation starts.
    """
    model_config = ConfigDict(frozen=True)

    start_time: datetime
    invoke_event_raw_payload: str = ""
    invoke_event_headers: LambdaInvokeEventHeaders = Field(default_factory=LambdaInvokeEventHeaders)


class InvocationEndDetails(BaseModel):
    """
    What the host knows when an invocation ends.
    """
    model_config = ConfigDict(frozen=True)

    end_time: datetime
    is_error: bool = False
    request_id: str = ""
    response_raw_payload: Optional[Union[bytes, str]] = None


class InvocationPayload(BaseModel):
    """Header mapping embedded in an invocation event."""
    headers: Optional[Dict[str, Any]] = None


class ExecutionContext(BaseModel):
    """
    Host-side context of the running function.
    """
    arn: str = ""
    last_request_id: str = ""
    coldstart: bool = False
