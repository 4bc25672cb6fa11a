"""
=============================================================================
LOGGING MIDDLEWARE
=============================================================================

One access-log line per handled request, with timing.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default, Apache combined style):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /echo/abc HTTP/1.1" │
    │ 200 3 0.12ms                                                        │
    │ ─────────────────────────────────────────────────────────────────── │
    │ IP         Timestamp           Request line    Status Size Duration │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (one object per line, for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/echo/abc",   │
    │  "version": "HTTP/1.1",                                            │
    │  "client_ip": "127.0.0.1", "user_agent": "curl/8.4.0",             │
    │  "status_code": 200, "content_length": 3, "content_encoding": "",  │
    │  "duration_ms": 0.12, "timestamp": "19/Oct/2026:10:55:36 +0000"}   │
    └─────────────────────────────────────────────────────────────────────┘

Entries go to the "minihttpd.access" logger, so they can be routed or
silenced independently of the server's own logs:

    logging.getLogger("minihttpd.access").setLevel(logging.WARNING)

The request ID only appears in the log. It is never added to the response,
which keeps identical requests producing identical bytes.

=============================================================================
"""

import time
import json
import uuid
import logging
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import CONTENT_ENCODING, HTTPResponse


logger = logging.getLogger("minihttpd.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    request_id:       Short random ID to correlate log lines
    method:           First token of the request line
    path:             Second token of the request line
    version:          Third token of the request line, "" if absent
    client_ip:        Peer address
    user_agent:       User-Agent header, "-" if absent
    status_code:      HTTP response code
    content_length:   Body size in bytes as sent (after encoding)
    content_encoding: "gzip" or ""
    duration_ms:      Time spent in the handler chain
    timestamp:        When the request finished
    """

    request_id: str
    method: str
    path: str
    version: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    content_encoding: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "version": self.version,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "content_encoding": self.content_encoding,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Format as an Apache combined-style log line."""
        request_line = " ".join(t for t in (self.method, self.path, self.version) if t)
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{request_line}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Add it FIRST so it sees every request and times the whole chain:

        pipeline.add(LoggingMiddleware(log_format="json"))
        pipeline.add(CompressionMiddleware())
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (human readable) or "json" (machine parseable).
            log_level: Level the access lines are emitted at. 5xx lines
                       are raised to at least WARNING.
        """
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")

        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.request_line!r} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            version=request.version,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            content_encoding=response.headers.get(CONTENT_ENCODING, ""),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        level = self.log_level
        if response.status.is_server_error:
            level = max(level, logging.WARNING)

        if self.log_format == "json":
            logger.log(level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(level, log_entry.to_text())

        return response
