"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the server in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m minihttpd --directory /tmp/data --port 4221     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_DIRECTORY=/tmp/data python -m minihttpd              │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    ┌──────────────────┬─────────────┬───────────────────┐
    │  Field           │  Default    │  Env var          │
    ├──────────────────┼─────────────┼───────────────────┤
    │  host            │  0.0.0.0    │  HTTP_HOST        │
    │  port            │  4221       │  HTTP_PORT        │
    │  directory       │  None       │  HTTP_DIRECTORY   │
    │  max_workers     │  16         │  HTTP_WORKERS     │
    │  timeout         │  30.0       │  HTTP_TIMEOUT     │
    │  log_level       │  INFO       │  HTTP_LOG_LEVEL   │
    │  log_format      │  text       │  HTTP_LOG_FORMAT  │
    └──────────────────┴─────────────┴───────────────────┘

The remaining fields (backlog, queue_size, size limits, encodings) are
code-only.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .http.encoding import DEFAULT_ENCODINGS, ENCODERS
from .http.reader import DEFAULT_MAX_BODY_SIZE, DEFAULT_MAX_HEADERS, DEFAULT_MAX_LINE_SIZE


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP server.

    Frozen: the same instance is read by every worker thread.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, timeout
    STORAGE     directory
    THREADING   max_workers, queue_size
    LIMITS      max_line_size, max_headers, max_body_size
    ENCODING    encodings
    LOGGING     log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces
    - "127.0.0.1" - Localhost only
    """

    port: int = 4221
    """The port to listen on. 0 lets the OS pick a free one (tests)."""

    backlog: int = 128
    """Maximum number of connections the OS queues before refusing."""

    timeout: Optional[float] = 30.0
    """
    Per-connection socket read/write deadline in seconds.
    A client that stalls longer gets 408 Request Timeout.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE
    # ─────────────────────────────────────────────────────────────────────

    directory: Optional[str] = None
    """
    Storage root for /files/<name>.
    None disables storage: GET → 404, POST → 500.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 16
    """Worker threads, i.e. connections served at the same time."""

    queue_size: int = 64
    """Accepted connections allowed to wait for a worker before 503."""

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_line_size: int = DEFAULT_MAX_LINE_SIZE
    """Longest request or header line in bytes."""

    max_headers: int = DEFAULT_MAX_HEADERS
    """Most header lines accepted in one request."""

    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    """Largest Content-Length accepted (10 MiB)."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ENCODING
    # ─────────────────────────────────────────────────────────────────────

    encodings: Tuple[str, ...] = DEFAULT_ENCODINGS
    """Encodings the server may apply, matched against Accept-Encoding."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ServerConfig":
        """
        Create configuration from environment variables.

        Unset variables fall back to the dataclass defaults.

        Usage:
            HTTP_PORT=8080 HTTP_LOG_LEVEL=DEBUG python -m minihttpd

        Args:
            environ: Mapping to read instead of os.environ (for tests).

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            host=env.get("HTTP_HOST", defaults.host),
            port=int(env.get("HTTP_PORT", defaults.port)),
            directory=env.get("HTTP_DIRECTORY") or defaults.directory,
            max_workers=int(env.get("HTTP_WORKERS", defaults.max_workers)),
            timeout=float(env.get("HTTP_TIMEOUT", defaults.timeout)),
            log_level=env.get("HTTP_LOG_LEVEL", defaults.log_level).upper(),
            log_format=env.get("HTTP_LOG_FORMAT", defaults.log_format).lower(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails immediately with a
        clear message instead of on the first request.

        Raises:
            ValueError: Describing the first invalid field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_line_size < 64:
            raise ValueError("max_line_size must be >= 64")

        if self.max_headers < 1:
            raise ValueError("max_headers must be >= 1")

        if self.max_body_size < 0:
            raise ValueError("max_body_size must be >= 0")

        unknown = [enc for enc in self.encodings if enc not in ENCODERS]
        if unknown:
            raise ValueError(f"Unsupported encodings: {', '.join(unknown)}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if self.directory is not None and not Path(self.directory).is_dir():
            raise ValueError(f"directory does not exist: {self.directory}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Frozen dataclass, shared read-only by all workers
# 2. from_env() for HTTP_* variables, CLI flags override on top
# 3. validate() at startup (fail-fast)
# =============================================================================
