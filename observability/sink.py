"""
Trace Sink Interface

Abstract sink for trace payloads.
Storage-agnostic - implementations can write to console, an intake client, etc.

DESIGN RULES:
- Side-effect only
- Never throw exceptions
- Callable, so a sink can be passed wherever a process_trace callback is expected
"""

import json
import logging
from abc import ABC, abstractmethod

from observability.trace import Payload


logger = logging.getLogger(__name__)


class TraceSink(ABC):
    """
    Abstract base for trace payload destinations.

    Implementations:
    - ConsoleTraceSink (default)
    - JsonTraceSink
    """

    @abstractmethod
    def emit(self, payload: Payload) -> None:
        """
        Emit a payload to the sink.

        Must not throw - failures should be logged and ignored.
        """
        pass

    def __call__(self, payload: Payload) -> None:
        self.emit(payload)


class ConsoleTraceSink(TraceSink):
    """
    Default sink that prints spans to console.

    Format: structured but human-readable.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize console sink.

        Args:
            verbose: If True, print span metadata. If False, summary only.
        """
        self._verbose = verbose

    def emit(self, payload: Payload) -> None:
        """Print each span in the payload."""
        try:
            for chunk in payload.tracer_payload.chunks:
                for span in chunk.spans:
                    status = "✗" if span.error else "✓"

                    print(f"\n{'='*60}")
                    print(f"[TRACE] {status} {span.name} {span.resource}")
                    print(f"{'='*60}")
                    print(f"  Trace:    {span.trace_id}")
                    print(f"  Span:     {span.span_id}")
                    print(f"  Parent:   {span.parent_id}")
                    print(f"  Duration: {span.duration / 1_000_000:.3f}ms")

                    if chunk.priority is not None:
                        print(f"  Priority: {chunk.priority}")

                    if self._verbose and span.meta:
                        print(f"\n  Meta:")
                        for key, value in span.meta.items():
                            # Truncate long values
                            if len(value) > 60:
                                value = value[:57] + "..."
                            print(f"    {key}: {value}")

                    print(f"{'='*60}\n")

        except Exception as e:
            logger.warning(f"[TRACE] Failed to emit payload: {e}")


class JsonTraceSink(TraceSink):
    """
    Sink that outputs payloads as JSON lines.

    Useful for log aggregation systems.
    """

    def emit(self, payload: Payload) -> None:
        """Print payload as JSON line."""
        try:
            print(json.dumps(payload.to_dict(), default=str))
        except Exception as e:
            logger.warning(f"[TRACE] Failed to emit JSON payload: {e}")
