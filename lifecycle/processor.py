"""
Lifecycle Processor

The two hooks the serverless host calls around every invocation.
Wires the execution span tracker, the inferred span builder, tracing
library detection and enhanced error metrics together.

State machine: idle -> started (on_invoke_start) -> idle (on_invoke_end).
Calling a hook out of order is a host precondition violation.
"""

import logging
from typing import Callable, List, Optional

from app.core.config import LifecycleSettings, get_settings
from lifecycle.detection import LambdaLibraryDetector
from lifecycle.inferred_span import InferredSpan
from lifecycle.trace import ExecutionSpanTracker
from observability.metrics import Demultiplexer, send_errors_enhanced_metric
from observability.trace import Payload
from schemas.invocation import ExecutionContext, InvocationEndDetails, InvocationStartDetails


logger = logging.getLogger(__name__)


class LifecycleProcessor:
    """
    Invocation processor for the serverless host.

    Decides per invocation whether this process or a co-resident tracing
    library owns the execution span. Enhanced error metrics are sent either
    way.
    """

    def __init__(
        self,
        process_trace: Callable[[Payload], None],
        demux: Demultiplexer,
        detect_lambda_library: Optional[Callable[[], bool]] = None,
        extra_tags: Optional[List[str]] = None,
        tracker: Optional[ExecutionSpanTracker] = None,
        inferred_span: Optional[InferredSpan] = None,
        execution_context: Optional[ExecutionContext] = None,
        config_provider: Callable[[], LifecycleSettings] = get_settings,
    ):
        """
        Initialize the processor.

        Args:
            process_trace: Trace sink callback for execution and inferred spans
            demux: Metrics demultiplexer for enhanced metrics
            detect_lambda_library: Returns True when a tracing library owns spans
            extra_tags: Static tags attached to enhanced metrics. The function
                name tag is added from current settings at each invocation.
            tracker: Execution span tracker. Defaults to a fresh one.
            inferred_span: Inferred span builder. Defaults to a fresh one.
            execution_context: Fallback context for inferred spans
            config_provider: Returns current settings, called at every hook
        """
        self.process_trace = process_trace
        self.demux = demux
        self.detect_lambda_library = detect_lambda_library or LambdaLibraryDetector()
        self.extra_tags = extra_tags or []
        self.tracker = tracker or ExecutionSpanTracker()
        self.inferred_span = inferred_span or InferredSpan()
        self.execution_context = execution_context
        self._config_provider = config_provider

    def on_invoke_start(
        self,
        start_details: InvocationStartDetails,
        execution_context: Optional[ExecutionContext] = None,
    ) -> None:
        """Hook triggered when an invocation has started."""
        logger.debug(f"[LIFECYCLE] Invocation has started at: {start_details.start_time}")
        logger.debug(f"[LIFECYCLE] Invocation invokeEvent payload is: {start_details.invoke_event_raw_payload}")

        config = self._config_provider()
        inferred_spans_enabled = config.inferred_spans_enabled

        # Created first so the execution span can be parented to it
        if inferred_spans_enabled:
            logger.debug("[LIFECYCLE] Attempting to create inferred span")
            self.inferred_span.create(
                start_details.invoke_event_raw_payload,
                execution_context or self.execution_context,
            )

        if self.detect_lambda_library():
            logger.debug("[LIFECYCLE] Tracing library present, skipping execution span")
            return

        self.tracker.start_span(
            start_details.start_time,
            start_details.invoke_event_raw_payload,
            start_details.invoke_event_headers,
            inferred_spans_enabled,
            self.inferred_span,
        )

    def on_invoke_end(self, end_details: InvocationEndDetails) -> None:
        """Hook triggered when an invocation has ended."""
        logger.debug(f"[LIFECYCLE] Invocation has finished at: {end_details.end_time}")
        logger.debug(f"[LIFECYCLE] Invocation isError is: {end_details.is_error}")

        config = self._config_provider()

        if not self.detect_lambda_library():
            logger.debug("[LIFECYCLE] Creating and sending function execution span for invocation")
            self.tracker.end_span(
                self.process_trace,
                end_details.request_id,
                end_details.end_time,
                end_details.is_error,
                end_details.response_raw_payload,
                capture_payload=config.capture_lambda_payload,
                function_name=config.function_name,
            )

        if end_details.is_error:
            send_errors_enhanced_metric(self.metric_tags(config), end_details.end_time, self.demux)

        if config.inferred_spans_enabled:
            logger.debug("[LIFECYCLE] Attempting to complete the inferred span")
            self.inferred_span.complete(
                self.process_trace,
                end_details.end_time,
                end_details.is_error,
                end_details.request_id,
            )

    def metric_tags(self, config: LifecycleSettings) -> List[str]:
        """Enhanced metric tags for the current invocation."""
        tags = list(self.extra_tags)
        if config.function_name and not any(tag.startswith("functionname:") for tag in tags):
            tags.append(f"functionname:{config.function_name.lower()}")
        return tags
