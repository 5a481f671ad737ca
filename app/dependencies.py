"""
FastAPI Dependencies

All object creation happens here, not per request.
The processor holds the single in-flight execution slot, so exactly one
instance exists per process.
"""

from functools import lru_cache

from app.core.config import get_settings
from lifecycle.detection import LambdaLibraryDetector
from lifecycle.processor import LifecycleProcessor
from observability.metrics import LoggingDemultiplexer
from observability.sink import ConsoleTraceSink
from schemas.invocation import ExecutionContext


@lru_cache(maxsize=1)
def get_library_detector() -> LambdaLibraryDetector:
    """Process-wide tracing library detector."""
    return LambdaLibraryDetector()


@lru_cache(maxsize=1)
def get_execution_context() -> ExecutionContext:
    """Process-wide execution context."""
    return ExecutionContext()


@lru_cache(maxsize=1)
def get_lifecycle_processor() -> LifecycleProcessor:
    """
    Create and cache the LifecycleProcessor singleton.

    Wired here:
    - ConsoleTraceSink: receives execution and inferred spans
    - LoggingDemultiplexer: receives enhanced error metrics
    - LambdaLibraryDetector: shared with the /lambda/hello route

    Returns:
        LifecycleProcessor: The single invocation processor.
    """
    return LifecycleProcessor(
        process_trace=ConsoleTraceSink(),
        demux=LoggingDemultiplexer(),
        detect_lambda_library=get_library_detector(),
        execution_context=get_execution_context(),
        config_provider=get_settings,
    )
