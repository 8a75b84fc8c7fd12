"""
ob-test Access Log

Structured request logging: one JSON object per request, written after the
response status is known.
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Optional, TextIO

from fastapi import Request
from pythonjsonlogger.json import JsonFormatter


ACCESS_LOG_FORMAT = '%(levelname)s %(message)s'


def format_latency(seconds: float) -> str:
    """Render a duration the way request dashboards display it (e.g. 702.512ms)."""
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 0.001:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds * 1_000_000:.3f}µs"


class RequestLogger:
    """
    Per-request JSON access logger.

    Each instance owns a private logger and handler, so two servers in one
    process never share output. Construct it at startup, hand it to the
    server, and call close() on shutdown.

    Example:
        request_logger = RequestLogger()
        server = ObTestServer(config, request_logger=request_logger)
        try:
            server.start()
        finally:
            request_logger.close()
    """

    def __init__(self, stream: Optional[TextIO] = None, name: str = "obtest.access"):
        """
        Initialize access logger.

        Args:
            stream: Output sink (defaults to stdout)
            name: Logger name recorded on each entry
        """
        self.stream = stream or sys.stdout

        # Not registered with logging.getLogger: no shared global state
        self.logger = logging.Logger(name, level=logging.INFO)
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(JsonFormatter(ACCESS_LOG_FORMAT, json_ensure_ascii=False))
        self.logger.addHandler(self.handler)
        self.closed = False

    def log_request(
        self,
        method: str,
        path: str,
        status: int,
        latency: float,
        client_ip: str,
        started_at: Optional[datetime] = None
    ):
        """
        Emit one access log entry.

        Args:
            method: HTTP method
            path: Request path (no query string)
            status: Status code of the completed response
            latency: Elapsed time in seconds
            client_ip: Remote address of the caller
            started_at: Arrival time (defaults to now)
        """
        if self.closed:
            return

        timestamp = (started_at or datetime.now(timezone.utc)).astimezone()
        self.logger.info("request completed", extra={
            'timestamp': timestamp.isoformat(timespec='seconds'),
            'method': method,
            'path': path,
            'status': status,
            'latency': format_latency(latency),
            'latency_ms': round(latency * 1000, 3),
            'client_ip': client_ip,
        })

    async def middleware(self, request: Request, call_next):
        """HTTP middleware: time the downstream app and log its final status."""
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()

        response = await call_next(request)

        self.log_request(
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            latency=time.perf_counter() - start,
            client_ip=request.client.host if request.client else '',
            started_at=started_at
        )
        return response

    def close(self):
        """Flush and detach the handler. Later log calls are dropped."""
        if self.closed:
            return
        self.handler.flush()
        self.logger.removeHandler(self.handler)
        self.closed = True
