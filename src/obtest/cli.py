"""
ob-test CLI

Command-line interface for the ob-test mock server.

Commands:
    serve       - Start the mock HTTP server
    routes      - List the served endpoints

Examples:
    # Start on the default port (9999)
    obtest serve

    # Fail fast on a hung upstream and keep /file on the original shared path
    obtest serve --external-timeout 5 --shared-file
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from .server import ObTestServer, RequestLogger, ServerConfig
from .server.config import LOG_LEVELS


def build_config(args: argparse.Namespace) -> ServerConfig:
    """
    Build server config: environment variables first, then CLI flags.

    Args:
        args: Parsed command-line arguments

    Returns:
        ServerConfig instance

    Raises:
        ValueError: If an environment variable or flag value is invalid
    """
    config = ServerConfig.from_env()

    flags = {
        'host': args.host,
        'port': args.port,
        'log_level': args.log_level,
        'external_url': args.external_url,
        'external_timeout': args.external_timeout,
        'file_dir': args.file_dir,
        'delay_multiplier': args.delay_multiplier,
    }
    overrides = {name: value for name, value in flags.items() if value is not None}
    if args.shared_file:
        overrides['unique_file_paths'] = False

    return replace(config, **overrides)


def cmd_serve(args):
    """
    Start the mock server (blocking).

    Args:
        args: Parsed command-line arguments
    """
    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    request_logger = RequestLogger()
    try:
        server = ObTestServer(config, request_logger=request_logger)
        server.start()
    except KeyboardInterrupt:
        print("\nob-test server stopped")
    finally:
        request_logger.close()


def cmd_routes(args):
    """
    Print the route table.

    Args:
        args: Parsed command-line arguments
    """
    server = ObTestServer(request_logger=RequestLogger(stream=sys.stderr))
    try:
        for path, handler in server.routes():
            print(f"GET {path:<16} {handler.__name__}")
    finally:
        server.request_logger.close()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='obtest',
        description="ob-test - mock backend for exercising observability tooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start the server on the default port
  %(prog)s serve

  # Bind elsewhere and shorten every simulated delay
  %(prog)s serve --port 8080 --delay-multiplier 0.1

  # List endpoints
  %(prog)s routes

Every serve flag can also be set with an OBTEST_* environment variable
(e.g. OBTEST_PORT, OBTEST_EXTERNAL_TIMEOUT). Flags win over the environment.
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start the mock HTTP server')
    serve_parser.add_argument('--host', help='Host to bind (default: 0.0.0.0)')
    serve_parser.add_argument('-p', '--port', type=int, help='Port to bind (default: 9999)')
    serve_parser.add_argument('--log-level', choices=LOG_LEVELS, help='Diagnostic log level (default: info)')
    serve_parser.add_argument('--external-url', help='URL called by /external')
    serve_parser.add_argument('--external-timeout', type=float,
                              help='Timeout in seconds for the /external call (default: 30)')
    serve_parser.add_argument('--file-dir', help='Directory used by /file (default: current directory)')
    serve_parser.add_argument('--shared-file', action='store_true',
                              help='Use one fixed sample.txt for every /file request (racy under concurrency)')
    serve_parser.add_argument('--delay-multiplier', type=float,
                              help='Scale every simulated delay (default: 1.0)')

    # --- ROUTES command ---
    subparsers.add_parser('routes', help='List served endpoints')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        'serve': cmd_serve,
        'routes': cmd_routes,
    }
    commands[args.command](args)


if __name__ == '__main__':
    main()
