"""
Invocation API Routes

Local endpoints called by the runtime and by in-function tracing libraries.
Thin delegation layer to the lifecycle processor.
Contains NO tracing logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.dependencies import get_execution_context, get_library_detector, get_lifecycle_processor
from lifecycle.detection import LambdaLibraryDetector
from lifecycle.processor import LifecycleProcessor
from schemas.invocation import (
    ExecutionContext,
    InvocationEndDetails,
    InvocationStartDetails,
    LambdaInvokeEventHeaders,
)


router = APIRouter()


REQUEST_ID_HEADER = "lambda-runtime-aws-request-id"
INVOCATION_ERROR_HEADER = "x-datadog-invocation-error"
TRACE_ID_HEADER = "x-datadog-trace-id"
PARENT_ID_HEADER = "x-datadog-parent-id"


@router.post("/hello")
def hello(detector: LambdaLibraryDetector = Depends(get_library_detector)) -> dict:
    """A tracing library announces itself and takes over execution spans."""
    detector.mark_detected()
    return {}


@router.post("/start-invocation")
async def start_invocation(
    request: Request,
    processor: LifecycleProcessor = Depends(get_lifecycle_processor),
    context: ExecutionContext = Depends(get_execution_context),
) -> dict:
    """
    Start of an invocation.

    Body is the raw invocation event. Trace headers on the request carry
    context for direct invocations.
    """
    start_time = datetime.now(timezone.utc)
    body = await request.body()

    request_id = request.headers.get(REQUEST_ID_HEADER)
    if request_id:
        context.last_request_id = request_id

    details = InvocationStartDetails(
        start_time=start_time,
        invoke_event_raw_payload=body.decode("utf-8", errors="replace"),
        invoke_event_headers=LambdaInvokeEventHeaders(
            trace_id=request.headers.get(TRACE_ID_HEADER, ""),
            parent_id=request.headers.get(PARENT_ID_HEADER, ""),
        ),
    )
    processor.on_invoke_start(details, context)
    return {}


@router.post("/end-invocation")
async def end_invocation(
    request: Request,
    processor: LifecycleProcessor = Depends(get_lifecycle_processor),
    context: ExecutionContext = Depends(get_execution_context),
) -> dict:
    """
    End of an invocation.

    Body is the function response.
    """
    end_time = datetime.now(timezone.utc)
    body = await request.body()

    details = InvocationEndDetails(
        end_time=end_time,
        is_error=request.headers.get(INVOCATION_ERROR_HEADER, "").lower() == "true",
        request_id=request.headers.get(REQUEST_ID_HEADER) or context.last_request_id,
        response_raw_payload=body,
    )
    processor.on_invoke_end(details)
    return {}
