"""
ob-test Server

FastAPI-based mock backend that produces predictable request patterns for
exercising logging, tracing and latency dashboards.

Features:
- Static content endpoints
- Simulated database, cache and external API latency
- File write/read/cleanup cycle
- Canned 401/403/404/500 responses
- Structured JSON access log and panic recovery
"""

from __future__ import annotations  # Enable forward references for type hints

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Tuple

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from .access_log import RequestLogger
from .config import ServerConfig
from .simulation import (
    COMPLEX_QUERY_INITIAL_DELAY_MS,
    COMPLEX_QUERY_PROCESSING_DELAY_MS,
    DATA_DELAY_MS,
    EXTERNAL_DELAY_MS,
    another_database_query,
    query_database,
    read_cache,
    simulate_latency,
)


FILE_NAME = "sample.txt"
FILE_PAYLOAD = b"Hello, World!"

Handler = Callable[[], Awaitable[Response]]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': message})


class ObTestServer:
    """
    Mock backend serving twelve fixed GET endpoints.

    Every request passes through the access logger (outermost) and the
    recovery middleware, then reaches exactly one handler from the route
    table. Unknown paths get FastAPI's default 404.

    Example:
        # Defaults: port 9999, literal latencies, JSON access log on stdout
        server = ObTestServer()
        server.start()

        # Custom config
        config = ServerConfig(port=8080, external_timeout=5.0)
        server = ObTestServer(config, request_logger=RequestLogger(stream=log_file))
        server.start()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        request_logger: Optional[RequestLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize server.

        Args:
            config: Optional ServerConfig for server behavior
            request_logger: Access logger (a stdout logger is created if None)
            transport: Optional httpx transport for the /external call
        """
        self.config = config or ServerConfig()
        self.request_logger = request_logger or RequestLogger()
        self.transport = transport

        self.logger = logging.getLogger("obtest.server")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

        self.app = self._create_app()

    def routes(self) -> List[Tuple[str, Handler]]:
        """Static route table, in registration order."""
        return [
            ("/", self.home),
            ("/about", self.about),
            ("/contact", self.contact),
            ("/data", self.data),
            ("/external", self.external),
            ("/complex-query", self.complex_query),
            ("/cache", self.cache),
            ("/file", self.file_io),
            ("/unauthorized", self.unauthorized),
            ("/forbidden", self.forbidden),
            ("/not-found", self.not_found),
            ("/internal-error", self.internal_error),
        ]

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with middleware and routes."""
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.logger.info(f"ob-test server ready with {len(self.routes())} routes")
            yield
            self.logger.info("ob-test server shutting down")

        app = FastAPI(
            title="ob-test",
            description="Mock backend simulating latency, external calls, file I/O and HTTP errors",
            version="1.0.0",
            lifespan=lifespan,
            # Only the route table is served
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        # Last registered runs first: access log wraps recovery
        app.middleware("http")(self._recover)
        app.middleware("http")(self.request_logger.middleware)

        for path, handler in self.routes():
            app.add_api_route(path, handler, methods=["GET"])

        return app

    async def _recover(self, request: Request, call_next) -> Response:
        """Turn an exception escaping a handler into a 500 response."""
        try:
            return await call_next(request)
        except Exception:
            self.logger.exception(f"Unhandled error serving {request.method} {request.url.path}")
            return error_response(500, "Internal server error")

    # Static content

    async def home(self) -> Response:
        return PlainTextResponse("Welcome to ob-test!")

    async def about(self) -> Response:
        endpoints = "\n".join(
            f"{number}. `{path}`" for number, (path, _) in enumerate(self.routes(), start=1)
        )
        return PlainTextResponse(f"Mock application.\n\nHere are the endpoint names:\n{endpoints}.")

    async def contact(self) -> Response:
        return PlainTextResponse("Contact us at: initializ.ai")

    # Simulated latency

    async def data(self) -> Response:
        """Database call: 500ms handler latency plus a 200ms query."""
        multiplier = self.config.delay_multiplier
        await simulate_latency(DATA_DELAY_MS, multiplier)
        result = await query_database(multiplier)

        return JSONResponse(content={'data': result})

    async def complex_query(self) -> Response:
        """Two sequential queries with processing time in between (~1000ms)."""
        multiplier = self.config.delay_multiplier
        await simulate_latency(COMPLEX_QUERY_INITIAL_DELAY_MS, multiplier)
        first = await query_database(multiplier)

        await simulate_latency(COMPLEX_QUERY_PROCESSING_DELAY_MS, multiplier)
        second = await another_database_query(multiplier)

        return JSONResponse(content={'complex_data': f"Combined Results: {first}, {second}"})

    async def cache(self) -> Response:
        cached = await read_cache(self.config.delay_multiplier)
        return JSONResponse(content={'cache_data': cached})

    # External call

    async def external(self) -> Response:
        """
        Call the configured external URL and echo its status code.

        Any transport failure (DNS, connect, TLS, timeout) maps to a 500 with
        a static message. The upstream status becomes this response's status.
        """
        await simulate_latency(EXTERNAL_DELAY_MS, self.config.delay_multiplier)

        try:
            async with httpx.AsyncClient(
                timeout=self.config.external_timeout,
                transport=self.transport,
                follow_redirects=True
            ) as client:
                upstream = await client.get(self.config.external_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.warning(f"External call to {self.config.external_url} failed: {e!r}")
            return error_response(500, "Failed to call external API")

        return JSONResponse(
            status_code=upstream.status_code,
            content={'external_data': f"Received data from external API with status code {upstream.status_code}"}
        )

    # File I/O

    def file_path(self) -> Path:
        """Path used by one /file request."""
        if self.config.unique_file_paths:
            return Path(self.config.file_dir) / f"sample-{uuid.uuid4().hex}.txt"
        return Path(self.config.file_dir) / FILE_NAME

    async def file_io(self) -> Response:
        """Write, read back and delete a small file."""
        path = self.file_path()

        try:
            path.write_bytes(FILE_PAYLOAD)
        except OSError as e:
            self.logger.error(f"Failed to write {path}: {e}")
            return error_response(500, "Failed to write to file")

        try:
            content = path.read_bytes()
        except OSError as e:
            self.logger.error(f"Failed to read {path}: {e}")
            return error_response(500, "Failed to read from file")
        finally:
            # A sibling request in shared mode may already have removed it
            path.unlink(missing_ok=True)

        return JSONResponse(content={'file_content': content.decode('utf-8', errors='replace')})

    # Canned errors

    async def unauthorized(self) -> Response:
        return error_response(401, "Unauthorized access")

    async def forbidden(self) -> Response:
        return error_response(403, "Forbidden access")

    async def not_found(self) -> Response:
        return error_response(404, "Resource not found")

    async def internal_error(self) -> Response:
        return error_response(500, "Internal server error")

    def start(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print("ob-test server starting...")
        print(f"   Host: {actual_host}:{actual_port}")
        print(f"   External URL: {self.config.external_url} (timeout {self.config.external_timeout}s)")
        print(f"   File mode: {'unique per request' if self.config.unique_file_paths else 'shared ' + FILE_NAME}")
        if self.config.delay_multiplier != 1.0:
            print(f"   Delay multiplier: {self.config.delay_multiplier}")
        print()

        # Requests are logged by the RequestLogger middleware instead
        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level,
            access_log=False
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_app(config: Optional[ServerConfig] = None, **kwargs: Any) -> FastAPI:
    """
    Build the ASGI app from a config (or OBTEST_* environment variables).

    Usable as a uvicorn factory:
        uvicorn obtest.server.server:create_app --factory --port 9999

    Args:
        config: Optional ServerConfig (read from the environment if None)
        **kwargs: Passed through to ObTestServer (request_logger, transport)

    Returns:
        FastAPI application instance
    """
    return ObTestServer(config or ServerConfig.from_env(), **kwargs).get_app()
