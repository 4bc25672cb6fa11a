"""
=============================================================================
MINIHTTPD CLI ENTRY POINT
=============================================================================

Command-line interface for running the server.

=============================================================================
USAGE
=============================================================================

    # Defaults (0.0.0.0:4221, no file storage)
    python -m minihttpd

    # Serve and store files under /tmp/data
    python -m minihttpd --directory /tmp/data

    # Custom port, more workers
    python -m minihttpd -p 8080 -w 32

    # JSON access log at DEBUG level
    python -m minihttpd --log-format json --log-level DEBUG

Environment variables (HTTP_PORT, HTTP_DIRECTORY, ...) are read first;
flags given on the command line win.

=============================================================================
EXIT CODES
=============================================================================

    0   stopped cleanly (SIGINT / SIGTERM)
    1   could not bind the listening socket
    2   invalid configuration or arguments

=============================================================================
"""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS
from .server import MiniHTTPServer


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Every flag defaults to None (= not given)."""
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Minimal HTTP/1.1 server with echo, user-agent and file endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minihttpd                               # 0.0.0.0:4221
  minihttpd --directory /tmp/data         # enable /files/<name>
  minihttpd --port 8080 --workers 32
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Storage root for /files/<name> (must exist)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 4221)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-connection read/write timeout in seconds (default: 30)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 16)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttpd {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace, base: ServerConfig) -> ServerConfig:
    """Overlay the flags that were given on top of base."""
    overrides = {
        "host": args.host,
        "port": args.port,
        "directory": args.directory,
        "timeout": args.timeout,
        "max_workers": args.workers,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    return dataclasses.replace(
        base, **{key: value for key, value in overrides.items() if value is not None}
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code (see module docstring).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args, ServerConfig.from_env())
        server = MiniHTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.bind()
    except OSError as e:
        print(
            f"Error: cannot listen on {config.host}:{config.port}: {e}",
            file=sys.stderr,
        )
        return 1

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Parse flags (all optional)
# 2. ServerConfig.from_env() + flag overrides, validated
# 3. MiniHTTPServer(config).run() until a signal
# 4. Bind failure → exit 1
# =============================================================================
