# Observability Package
from observability.trace import Span, TraceChunk, TracerPayload, Payload
from observability.sink import TraceSink, ConsoleTraceSink, JsonTraceSink
from observability.metrics import (
    Demultiplexer,
    LoggingDemultiplexer,
    MetricSample,
    MetricType,
    send_errors_enhanced_metric,
)

__all__ = [
    "Span",
    "TraceChunk",
    "TracerPayload",
    "Payload",
    "TraceSink",
    "ConsoleTraceSink",
    "JsonTraceSink",
    "Demultiplexer",
    "LoggingDemultiplexer",
    "MetricSample",
    "MetricType",
    "send_errors_enhanced_metric",
]
