from datetime import datetime, timezone
from typing import List

import pytest

from app.core.config import LifecycleSettings
from observability.metrics import Demultiplexer, MetricSample
from observability.trace import Payload


ENV_VARS = (
    "DD_TRACE_ENABLED",
    "DD_TRACE_MANAGED_SERVICES",
    "DD_CAPTURE_LAMBDA_PAYLOAD",
    "DD_LOG_LEVEL",
    "AWS_LAMBDA_FUNCTION_NAME",
)


class RecordingDemultiplexer(Demultiplexer):
    def __init__(self):
        self.samples: List[MetricSample] = []

    def add_time_sample(self, sample: MetricSample) -> None:
        self.samples.append(sample)


class RecordingSink:
    def __init__(self):
        self.payloads: List[Payload] = []

    def __call__(self, payload: Payload) -> None:
        self.payloads.append(payload)

    @property
    def spans(self):
        return [
            span
            for payload in self.payloads
            for chunk in payload.tracer_payload.chunks
            for span in chunk.spans
        ]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def demux():
    return RecordingDemultiplexer()


@pytest.fixture
def start_time():
    return datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)


@pytest.fixture
def end_time():
    return datetime(2024, 5, 1, 12, 0, 1, 750000, tzinfo=timezone.utc)


def make_settings(**overrides) -> LifecycleSettings:
    values = {
        "trace_enabled": False,
        "trace_managed_services": False,
        "capture_lambda_payload": False,
        "function_name": "my-function",
    }
    values.update(overrides)
    return LifecycleSettings(**values)


@pytest.fixture
def settings_factory():
    return make_settings
