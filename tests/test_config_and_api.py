"""
Configuration and Local API Tests
"""

import logging

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.dependencies import get_execution_context, get_library_detector, get_lifecycle_processor
from app.main import app
from lifecycle.detection import LambdaLibraryDetector
from lifecycle.processor import LifecycleProcessor
from schemas.invocation import ExecutionContext


# ------------------------------------------------------------
# Configuration
# ------------------------------------------------------------

def test_defaults():
    config = get_settings()

    assert config.trace_enabled is False
    assert config.trace_managed_services is False
    assert config.capture_lambda_payload is False
    assert config.function_name == ""
    assert config.inferred_spans_enabled is False


@pytest.mark.parametrize("value,expected", [
    ("true", True),
    ("TRUE", True),
    (" True ", True),
    ("false", False),
    ("1", False),
    ("yes", False),
    ("garbage", False),
])
def test_flags_only_enabled_by_true(monkeypatch, value, expected):
    monkeypatch.setenv("DD_TRACE_ENABLED", value)

    assert get_settings().trace_enabled is expected


def test_environment_values(monkeypatch):
    monkeypatch.setenv("DD_TRACE_ENABLED", "true")
    monkeypatch.setenv("DD_TRACE_MANAGED_SERVICES", "true")
    monkeypatch.setenv("DD_CAPTURE_LAMBDA_PAYLOAD", "true")
    monkeypatch.setenv("AWS_LAMBDA_FUNCTION_NAME", "checkout")

    config = get_settings()

    assert config.inferred_spans_enabled is True
    assert config.capture_lambda_payload is True
    assert config.function_name == "checkout"


def test_configure_logging_sets_level():
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, root.handlers[:]

    try:
        configure_logging("debug")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


# ------------------------------------------------------------
# Local API
# ------------------------------------------------------------

@pytest.fixture
def api(sink, demux, settings_factory):
    detector = LambdaLibraryDetector()
    context = ExecutionContext()
    config = settings_factory()
    processor = LifecycleProcessor(
        process_trace=sink,
        demux=demux,
        detect_lambda_library=detector,
        extra_tags=["functionname:my-function"],
        execution_context=context,
        config_provider=lambda: config,
    )

    app.dependency_overrides[get_library_detector] = lambda: detector
    app.dependency_overrides[get_execution_context] = lambda: context
    app.dependency_overrides[get_lifecycle_processor] = lambda: processor
    yield TestClient(app), processor, detector
    app.dependency_overrides.clear()


def test_health(api):
    client, _, _ = api

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_start_and_end_invocation(api, sink):
    client, processor, _ = api

    response = client.post(
        "/lambda/start-invocation",
        content='{"key":"value"}',
        headers={
            "lambda-runtime-aws-request-id": "req-77",
            "x-datadog-trace-id": "123",
            "x-datadog-parent-id": "456",
        },
    )
    assert response.status_code == 200
    assert processor.tracker.trace_id() == 123

    response = client.post("/lambda/end-invocation", content="ok")
    assert response.status_code == 200

    span = sink.spans[0]
    assert span.trace_id == 123
    assert span.parent_id == 456
    assert span.meta["request_id"] == "req-77"
    assert span.error == 0


def test_end_invocation_error_header(api, sink, demux):
    client, _, _ = api

    client.post("/lambda/start-invocation", content="{}")
    client.post("/lambda/end-invocation", headers={"x-datadog-invocation-error": "true"})

    assert sink.spans[0].error == 1
    assert len(demux.samples) == 1


def test_hello_hands_spans_to_library(api, sink):
    client, _, detector = api

    response = client.post("/lambda/hello")
    assert response.status_code == 200
    assert detector() is True

    client.post("/lambda/start-invocation", content="{}")
    client.post("/lambda/end-invocation")

    assert sink.payloads == []
