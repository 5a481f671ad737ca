"""
Enhanced Metrics

Emits serverless enhanced metrics to the metrics demultiplexer.
Delivery semantics belong to the demultiplexer.

DESIGN RULES:
- Never raise exceptions
- Log failures as warnings only
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Sequence


logger = logging.getLogger(__name__)


ERRORS_METRIC = "aws.lambda.enhanced.errors"


class MetricType(str, Enum):
    GAUGE = "gauge"
    COUNT = "count"
    DISTRIBUTION = "distribution"


@dataclass(frozen=True)
class MetricSample:
    """A single timestamped metric value."""

    name: str
    value: float
    mtype: MetricType
    tags: List[str] = field(default_factory=list)
    sample_rate: float = 1.0
    timestamp: float = 0.0  # epoch seconds


class Demultiplexer(ABC):
    """
    Receives metric samples for aggregation.
    """

    @abstractmethod
    def add_time_sample(self, sample: MetricSample) -> None:
        pass


class LoggingDemultiplexer(Demultiplexer):
    """
    Default demultiplexer that logs samples.

    Stands in until a metrics pipeline is wired.
    """

    def add_time_sample(self, sample: MetricSample) -> None:
        logger.info(
            f"[METRICS] {sample.name}={sample.value} ({sample.mtype.value}) "
            f"tags={sample.tags} ts={sample.timestamp}"
        )


def send_errors_enhanced_metric(tags: Sequence[str], timestamp: datetime, demux: Demultiplexer) -> None:
    """
    Count one invocation error.

    Fire-and-forget. Never raises.
    """
    sample = MetricSample(
        name=ERRORS_METRIC,
        value=1.0,
        mtype=MetricType.DISTRIBUTION,
        tags=list(tags),
        sample_rate=1.0,
        timestamp=timestamp.timestamp(),
    )

    try:
        demux.add_time_sample(sample)
    except Exception as e:
        logger.warning(f"[METRICS] Failed to send {ERRORS_METRIC}: {e}")
