import logging
import sys
from typing import Optional

from app.core.config import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structured logging for the extension.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel((level or get_settings().log_level).upper())

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z"
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
