"""
Inferred Span Builder

Represents the upstream event that triggered an invocation (e.g. an API
Gateway request) as its own span, parented above the execution span.

DESIGN RULES:
- Never throw exceptions
- One inferred span per invocation, reset once completed
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from lifecycle.propagation import random_id
from observability.trace import Payload, Span, single_span_payload, to_unix_nano
from schemas.invocation import ExecutionContext


logger = logging.getLogger(__name__)


class InferredSpan:
    """
    Builds and emits the span of the triggering event.

    The execution span tracker reads and correlates span.trace_id,
    span.span_id, span.parent_id and sampling_priority between
    create() and complete().
    """

    def __init__(self):
        self.span: Optional[Span] = None
        self.sampling_priority: Optional[int] = None

    @property
    def is_started(self) -> bool:
        return self.span is not None

    def create(self, raw_payload: str, execution_context: Optional[ExecutionContext] = None) -> None:
        """
        Start an inferred span for the given invocation event.

        Unrecognized events still produce a generic span so that identifiers
        are always available for correlation.
        """
        self.sampling_priority = None
        self.span = Span(
            service="aws.lambda",
            name="aws.lambda.trigger",
            resource="unknown",
            trace_id=random_id(),
            span_id=random_id(),
            start=to_unix_nano(datetime.now(timezone.utc)),
            type="serverless",
            meta={"_inferred_span.tag_source": "self"},
        )

        if execution_context is not None and execution_context.arn:
            self.span.meta["function_arn"] = execution_context.arn

        try:
            event = json.loads(raw_payload) if raw_payload else None
        except ValueError:
            logger.debug("[LIFECYCLE] Invocation event is not JSON, keeping generic inferred span")
            return

        if not isinstance(event, dict):
            return

        try:
            request_context = event.get("requestContext")
            if not isinstance(request_context, dict):
                return
            if "httpMethod" in request_context:
                self._enrich_from_rest_api(event, request_context)
            elif isinstance(request_context.get("http"), dict):
                self._enrich_from_http_api(event, request_context)
        except Exception as e:
            logger.debug(f"[LIFECYCLE] Could not enrich inferred span: {e}")

    def _enrich_from_rest_api(self, event: Dict[str, Any], request_context: Dict[str, Any]) -> None:
        method = str(request_context.get("httpMethod", ""))
        path = str(event.get("path") or request_context.get("path", ""))
        domain = str(request_context.get("domainName", ""))

        self._apply(
            name="aws.apigateway.rest",
            service=domain,
            method=method,
            path=path,
            epoch_ms=request_context.get("requestTimeEpoch"),
        )
        self.span.meta["stage"] = str(request_context.get("stage", ""))
        self.span.meta["resource_path"] = str(request_context.get("resourcePath", ""))

    def _enrich_from_http_api(self, event: Dict[str, Any], request_context: Dict[str, Any]) -> None:
        http = request_context["http"]
        method = str(http.get("method", ""))
        path = str(http.get("path") or event.get("rawPath", ""))
        domain = str(request_context.get("domainName", ""))

        self._apply(
            name="aws.httpapi",
            service=domain,
            method=method,
            path=path,
            epoch_ms=request_context.get("timeEpoch"),
        )
        self.span.meta["stage"] = str(request_context.get("stage", ""))

    def _apply(self, name: str, service: str, method: str, path: str, epoch_ms: Any) -> None:
        span = self.span
        span.name = name
        span.type = "http"
        span.resource = f"{method} {path}".strip()
        if service:
            span.service = service
        span.meta.update({
            "operation_name": name,
            "http.method": method,
            "http.url": f"{service}{path}",
            "endpoint": path,
        })
        if isinstance(epoch_ms, (int, float)) and not isinstance(epoch_ms, bool):
            span.start = int(epoch_ms) * 1_000_000

    def complete(
        self,
        process_trace: Callable[[Payload], None],
        end_time: datetime,
        is_error: bool,
        request_id: str,
    ) -> None:
        """
        Finish the inferred span and hand it to the trace sink.

        Fire-and-forget. Never raises.
        """
        span = self.span
        if span is None:
            logger.debug("[LIFECYCLE] No inferred span to complete")
            return

        span.duration = to_unix_nano(end_time) - span.start
        span.meta["request_id"] = request_id
        if is_error:
            span.error = 1

        payload = single_span_payload(span, self.sampling_priority)

        self.span = None
        self.sampling_priority = None

        try:
            process_trace(payload)
        except Exception as e:
            logger.warning(f"[LIFECYCLE] Failed to send inferred span: {e}")
