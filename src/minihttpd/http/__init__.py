"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw bytes and handler calls, with no sockets involved.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ READER (reader.py)                                                  │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Pulls the request line, header block and Content-Length body off a  │
    │ buffered byte stream.                                               │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST (request.py)                                                │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Frozen HTTPRequest + RequestParser gluing the reader steps together │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ ROUTER (router.py)                                                  │
    │ ─────────────────────────────────────────────────────────────────── │
    │ "/", "/echo", "/user-agent", "/files" → Route, then by method to a  │
    │ handler                                                             │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ ENCODING (encoding.py)                                              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Accept-Encoding → at most one supported encoding (gzip)             │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py, status_codes.py)                             │
    │ ─────────────────────────────────────────────────────────────────── │
    │ HTTPResponse → "HTTP/1.1 <code> <phrase>\\r\\n" + headers + body      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HTTP MESSAGE FORMAT (RFC 7230)
=============================================================================

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /echo/abc HTTP/1.1\\r\\n        HTTP/1.1 200 OK\\r\\n
    User-Agent: curl\\r\\n              Content-Type: text/plain\\r\\n
    \\r\\n                              Content-Length: 3\\r\\n
                                      \\r\\n
                                      abc

=============================================================================
"""

from .reader import (
    RequestReadError,
    ConnectionClosedError,
    HTTPParseError,
    read_line,
    read_headers,
    read_body,
)
from .request import HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    # Convenience functions for common responses
    ok,                   # 200 OK (empty)
    ok_text,              # 200 OK text/plain
    ok_bytes,             # 200 OK application/octet-stream
    created,              # 201 Created
    bad_request,          # 400 Bad Request
    not_found,            # 404 Not Found
    request_timeout,      # 408 Request Timeout
    internal_error,       # 500 Internal Server Error
    service_unavailable,  # 503 Service Unavailable
)
from .encoding import EncodingPreference, parse_encoding_preference, negotiate
from .router import Router, Route, RouteMatch, RouteTable, resolve_route
from .status_codes import HTTPStatus

__all__ = [
    # Reading
    "RequestReadError",
    "ConnectionClosedError",
    "HTTPParseError",
    "read_line",
    "read_headers",
    "read_body",

    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "ok_text",
    "ok_bytes",
    "created",
    "bad_request",
    "not_found",
    "request_timeout",
    "internal_error",
    "service_unavailable",

    # Content negotiation
    "EncodingPreference",
    "parse_encoding_preference",
    "negotiate",

    # Routing
    "Router",
    "Route",
    "RouteMatch",
    "RouteTable",
    "resolve_route",

    # Status codes
    "HTTPStatus",
]
