"""
ob-test Server Module

Mock HTTP backend for generating predictable observability workloads.

This module provides:
- FastAPI-based server with a fixed route table
- Simulated database, cache and external API latency
- Structured JSON access logging
- Environment-driven configuration
"""

from .server import ObTestServer, create_app
from .access_log import RequestLogger, format_latency
from .config import ServerConfig, DEFAULT_PORT, DEFAULT_EXTERNAL_URL

__all__ = [
    # Server
    'ObTestServer',
    'create_app',

    # Logging
    'RequestLogger',
    'format_latency',

    # Config
    'ServerConfig',
    'DEFAULT_PORT',
    'DEFAULT_EXTERNAL_URL',
]
