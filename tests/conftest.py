"""Shared fixtures for ob-test tests."""

import io
import json

import pytest
from fastapi.testclient import TestClient

from obtest.server import ObTestServer, RequestLogger, ServerConfig


@pytest.fixture
def log_stream():
    """In-memory sink for the access log."""
    return io.StringIO()


@pytest.fixture
def request_logger(log_stream):
    """Access logger writing to log_stream."""
    logger = RequestLogger(stream=log_stream)
    yield logger
    logger.close()


@pytest.fixture
def fast_config(tmp_path):
    """Config with every simulated delay disabled and /file confined to tmp_path."""
    return ServerConfig(delay_multiplier=0, file_dir=str(tmp_path))


@pytest.fixture
def server(fast_config, request_logger):
    return ObTestServer(fast_config, request_logger=request_logger)


@pytest.fixture
def client(server):
    return TestClient(server.app)


@pytest.fixture
def log_entries(log_stream):
    """Callable returning the access log entries written so far."""
    def read():
        return [json.loads(line) for line in log_stream.getvalue().splitlines() if line.strip()]
    return read
