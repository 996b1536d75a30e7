import io
import json
import logging

import pytest
import structlog

from modification_service.configuration.logging_config import configure_logging, filter_sensitive_data


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging and structlog configuration after each test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    structlog._modification_configured = False
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)


def test_filter_sensitive_data_processor():
    """Credential-like keys are masked regardless of case."""
    event_dict = {
        'password': 'my-secret-password',
        'OAI_KEY': 'sk-123',
        'Authorization': 'Bearer abc',
        'file': 'src/App.tsx',
    }
    processed = filter_sensitive_data(None, None, event_dict)
    assert processed['password'] == '[FILTERED]'
    assert processed['OAI_KEY'] == '[FILTERED]'
    assert processed['Authorization'] == '[FILTERED]'
    assert processed['file'] == 'src/App.tsx'


def test_logging_produces_filtered_json_with_request_context():
    stream = io.StringIO()
    configure_logging(log_level="INFO", stream=stream, force_reconfigure=True)

    structlog.contextvars.bind_contextvars(session_id="s1", request_id="abc123")
    structlog.get_logger("modification_test").info("file_patched", file="src/App.tsx", api_key="secret-value")

    log_json = json.loads(stream.getvalue().strip())
    assert log_json['event'] == 'file_patched'
    assert log_json['session_id'] == 's1'
    assert log_json['request_id'] == 'abc123'
    assert log_json['api_key'] == '[FILTERED]'
    assert log_json['level'] == 'info'
    assert log_json['logger'] == 'modification_test'
    assert 'timestamp' in log_json


def test_level_filtering():
    stream = io.StringIO()
    configure_logging(log_level="WARNING", stream=stream, force_reconfigure=True)

    logger = structlog.get_logger("modification_test")
    logger.info("hidden")
    logger.warning("shown")

    lines = [json.loads(line) for line in stream.getvalue().strip().split("\n")]
    assert [line['event'] for line in lines] == ['shown']


def test_configuration_is_applied_once_unless_forced():
    first, second = io.StringIO(), io.StringIO()
    configure_logging(stream=first, force_reconfigure=True)
    configure_logging(stream=second)

    structlog.get_logger("modification_test").info("once")

    assert "once" in first.getvalue()
    assert second.getvalue() == ""
