# Lifecycle Package
from lifecycle.trace import ExecutionSpanTracker, ExecutionStartInfo
from lifecycle.inferred_span import InferredSpan
from lifecycle.detection import LambdaLibraryDetector
from lifecycle.processor import LifecycleProcessor

__all__ = [
    "ExecutionSpanTracker",
    "ExecutionStartInfo",
    "InferredSpan",
    "LambdaLibraryDetector",
    "LifecycleProcessor",
]
