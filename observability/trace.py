"""
Trace Wire Model

Span, chunk and payload structures handed to the trace sink.
Pure data containers - filled by the lifecycle, never retained after emission.

DESIGN RULES:
- Pure data containers
- No dependencies on the lifecycle
- Timestamps and durations in nanoseconds
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_unix_nano(moment: datetime) -> int:
    """
    Convert a datetime to integer nanoseconds since the epoch.

    Naive datetimes are taken as UTC. The conversion is exact, so the
    difference of two converted values equals the difference of the inputs.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1000


@dataclass
class Span:
    """
    A single span.

    Captures:
    - Identity (trace_id, span_id, parent_id)
    - Naming (service, name, resource, type)
    - Timing (start, duration)
    - Outcome (error) and string metadata
    """

    service: str
    name: str
    resource: str
    trace_id: int
    span_id: int
    parent_id: int = 0
    start: int = 0
    duration: int = 0
    error: int = 0
    type: str = ""
    meta: Dict[str, str] = field(default_factory=dict)
    metrics: Dict[str, float] = field(default_factory=dict)


@dataclass
class TraceChunk:
    """Spans of one trace delivered together."""

    spans: List[Span] = field(default_factory=list)
    priority: Optional[int] = None


@dataclass
class TracerPayload:
    """A group of chunks from a single tracer."""

    chunks: List[TraceChunk] = field(default_factory=list)


@dataclass
class Payload:
    """Unit handed to the trace sink."""

    tracer_payload: TracerPayload
    source: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging/export."""
        return asdict(self)


def single_span_payload(span: Span, priority: Optional[int] = None) -> Payload:
    """Wrap one span in a one-chunk tracer payload."""
    chunk = TraceChunk(spans=[span], priority=priority)
    return Payload(tracer_payload=TracerPayload(chunks=[chunk]))
