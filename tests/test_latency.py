"""
Tests for simulated latency

Tests the delay contract including:
- Lower bounds of /data, /complex-query and /cache with literal delays
- Delay multiplier scaling
- Canned query steps
"""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from obtest.server import ObTestServer, ServerConfig
from obtest.server.simulation import (
    ANOTHER_DB_RESPONSE,
    CACHED_DATA,
    DB_RESPONSE,
    another_database_query,
    query_database,
    read_cache,
    simulate_latency,
)


@pytest.fixture
def real_time_client(tmp_path, request_logger):
    """Client for a server using the literal delays."""
    config = ServerConfig(file_dir=str(tmp_path))
    return TestClient(ObTestServer(config, request_logger=request_logger).app)


def timed_get(client, path):
    start = time.perf_counter()
    response = client.get(path)
    return response, time.perf_counter() - start


class TestEndpointLatency:
    """Test minimum response latency with literal delays."""

    @pytest.mark.parametrize('path,minimum', [
        ('/cache', 0.1),
        ('/data', 0.7),
        ('/complex-query', 1.0),
    ])
    def test_minimum_latency(self, real_time_client, path, minimum):
        response, elapsed = timed_get(real_time_client, path)

        assert response.status_code == 200
        assert elapsed >= minimum


class TestDelaySequence:
    """Test which delays each handler applies, in order."""

    @pytest.fixture
    def delays(self):
        """Record every simulate_latency call made by handlers and query steps."""
        mock_latency = AsyncMock()
        with patch('obtest.server.server.simulate_latency', mock_latency), \
                patch('obtest.server.simulation.simulate_latency', mock_latency):
            yield lambda: [c.args[0] for c in mock_latency.await_args_list]

    def test_data_sequence(self, delays, real_time_client):
        real_time_client.get('/data')

        assert delays() == [500, 200]

    def test_complex_query_sequence(self, delays, real_time_client):
        real_time_client.get('/complex-query')

        assert delays() == [300, 200, 300, 200]

    def test_cache_sequence(self, delays, real_time_client):
        real_time_client.get('/cache')

        assert delays() == [100]


class TestSimulation:
    """Test the simulated backend steps directly."""

    @patch('obtest.server.simulation.asyncio.sleep', new_callable=AsyncMock)
    def test_multiplier_scales_delay(self, mock_sleep):
        asyncio.run(simulate_latency(500, 0.5))

        mock_sleep.assert_awaited_once_with(0.25)

    @patch('obtest.server.simulation.asyncio.sleep', new_callable=AsyncMock)
    def test_zero_multiplier_skips_sleep(self, mock_sleep):
        asyncio.run(simulate_latency(500, 0))

        mock_sleep.assert_not_awaited()

    def test_query_steps_return_canned_values(self):
        assert asyncio.run(query_database(0)) == DB_RESPONSE
        assert asyncio.run(another_database_query(0)) == ANOTHER_DB_RESPONSE
        assert asyncio.run(read_cache(0)) == CACHED_DATA
        assert DB_RESPONSE != ANOTHER_DB_RESPONSE
