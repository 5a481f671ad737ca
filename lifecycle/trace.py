"""
Execution Span Tracker

Owns the trace identity of the in-flight invocation and builds the
function execution span when it ends.

PRECONDITION:
The host delivers invocations strictly serially within a process; a new
invocation never starts before the previous end hook has returned. The
tracker holds a single slot and does no locking.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from app.core.config import get_settings
from lifecycle.inferred_span import InferredSpan
from lifecycle.propagation import (
    PARENT_ID_HEADER,
    SAMPLING_PRIORITY_HEADER,
    TRACE_ID_HEADER,
    convert_raw_payload,
    parse_int64,
    parse_uint64,
    random_id,
)
from observability.trace import Payload, Span, single_span_payload, to_unix_nano
from schemas.invocation import LambdaInvokeEventHeaders


logger = logging.getLogger(__name__)


EXECUTION_SPAN_NAME = "aws.lambda"


@dataclass
class ExecutionStartInfo:
    """
    Saved state from the start of the current execution span.
    """
    start_time: Optional[datetime] = None
    trace_id: int = 0
    span_id: int = 0
    parent_id: int = 0
    sampling_priority: Optional[int] = None
    request_payload: str = ""


class ExecutionSpanTracker:
    """
    Resolves trace context at invocation start and emits the execution
    span at invocation end.

    Context precedence:
    1. Random trace/span IDs, zero parent
    2. Inferred span identifiers, when inferred spans are enabled
    3. Headers embedded in the event payload (each field independently)
    4. Direct invocation headers (trace and parent together)
    """

    def __init__(self):
        self.current = ExecutionStartInfo()

    def trace_id(self) -> int:
        """Trace ID of the current execution."""
        return self.current.trace_id

    def span_id(self) -> int:
        """Span ID of the current execution."""
        return self.current.span_id

    def start_span(
        self,
        start_time: datetime,
        raw_payload: str,
        invoke_event_headers: Optional[LambdaInvokeEventHeaders] = None,
        inferred_spans_enabled: bool = False,
        inferred_span: Optional[InferredSpan] = None,
    ) -> None:
        """
        Record the start of an invocation and resolve its trace context.

        Args:
            start_time: When the invocation started
            raw_payload: Raw invocation event
            invoke_event_headers: Trace headers of a direct invocation
            inferred_spans_enabled: Whether an inferred span parents this one
            inferred_span: The inferred span to correlate with
        """
        info = ExecutionStartInfo(
            start_time=start_time,
            trace_id=random_id(),
            span_id=random_id(),
            parent_id=0,
            request_payload=raw_payload,
        )
        self.current = info

        inferred = inferred_span if inferred_spans_enabled and inferred_span is not None else None
        if inferred is not None and inferred.span is None:
            logger.debug("[TRACE] Inferred spans enabled but no inferred span was created")
            inferred = None

        if inferred is not None:
            info.trace_id = inferred.span.trace_id
            info.parent_id = inferred.span.span_id

        payload = convert_raw_payload(raw_payload)

        if payload.headers is not None:
            headers = payload.headers

            try:
                trace_id = parse_uint64(headers.get(TRACE_ID_HEADER))
            except ValueError as e:
                logger.debug(f"[TRACE] Unable to parse trace ID header: {e}")
            else:
                info.trace_id = trace_id
                if inferred is not None:
                    inferred.span.trace_id = trace_id

            try:
                parent_id = parse_uint64(headers.get(PARENT_ID_HEADER))
            except ValueError as e:
                logger.debug(f"[TRACE] Unable to parse parent ID header: {e}")
            else:
                if inferred is not None:
                    inferred.span.parent_id = parent_id
                else:
                    info.parent_id = parent_id

            try:
                sampling_priority = parse_int64(headers.get(SAMPLING_PRIORITY_HEADER))
            except ValueError as e:
                logger.debug(f"[TRACE] Unable to parse sampling priority header: {e}")
            else:
                info.sampling_priority = sampling_priority
                if inferred is not None:
                    inferred.sampling_priority = sampling_priority

        elif invoke_event_headers is not None and invoke_event_headers.trace_id:
            # Direct invocation: trace and parent fall back together
            try:
                trace_id = parse_uint64(invoke_event_headers.trace_id)
                parent_id = parse_uint64(invoke_event_headers.parent_id)
            except ValueError as e:
                logger.debug(f"[TRACE] Unable to parse Trace or Parent ID from invoke event headers: {e}")
            else:
                info.trace_id = trace_id
                info.parent_id = parent_id

    def end_span(
        self,
        process_trace: Callable[[Payload], None],
        request_id: str,
        end_time: datetime,
        is_error: bool,
        response_payload: Optional[Union[bytes, str]] = None,
        capture_payload: bool = False,
        function_name: Optional[str] = None,
    ) -> None:
        """
        Build the function execution span and hand it to the trace sink.

        Args:
            process_trace: Trace sink callback
            request_id: Request ID of the invocation
            end_time: When the invocation ended
            is_error: Whether the invocation failed
            response_payload: Function response, attached only when capturing
            capture_payload: Attach request and response payloads as metadata
            function_name: Span resource. Defaults to the hosting environment.

        Note: This method NEVER throws. Sink failures are logged and ignored.
        """
        info = self.current
        if info.start_time is None:
            logger.warning("[TRACE] Invocation ended without a recorded start, no execution span sent")
            return

        if function_name is None:
            function_name = get_settings().function_name

        start = to_unix_nano(info.start_time)

        span = Span(
            service=EXECUTION_SPAN_NAME,  # replaced downstream by the span processor
            name=EXECUTION_SPAN_NAME,
            resource=function_name,
            type="serverless",
            trace_id=info.trace_id,
            span_id=info.span_id,
            parent_id=info.parent_id,
            start=start,
            duration=to_unix_nano(end_time) - start,
            meta={"request_id": request_id},
        )

        if capture_payload:
            span.meta["function.request"] = info.request_payload
            span.meta["function.response"] = _decode_response(response_payload)

        if is_error:
            span.error = 1

        payload = single_span_payload(span, info.sampling_priority)

        self.current = ExecutionStartInfo()

        try:
            process_trace(payload)
        except Exception as e:
            logger.warning(f"[TRACE] Failed to send execution span: {e}")


def _decode_response(response_payload: Optional[Union[bytes, str]]) -> str:
    if response_payload is None:
        return ""
    if isinstance(response_payload, bytes):
        return response_payload.decode("utf-8", errors="replace")
    return response_payload
