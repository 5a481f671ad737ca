"""
Tracing Library Detection

A tracing library running inside the function announces itself once it
has loaded. From then on it owns execution span creation.
"""

import logging


logger = logging.getLogger(__name__)


class LambdaLibraryDetector:
    """Callable flag: True once a tracing library has announced itself."""

    def __init__(self, detected: bool = False):
        self._detected = detected

    def mark_detected(self) -> None:
        """Record that a tracing library has announced itself."""
        if not self._detected:
            logger.debug("[LIFECYCLE] Tracing library detected, it now owns execution spans")
        self._detected = True

    def __call__(self) -> bool:
        """Whether a tracing library owns execution spans."""
        return self._detected
