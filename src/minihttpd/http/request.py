"""
=============================================================================
HTTP REQUEST
=============================================================================

The parsed request and the parser that builds it from a byte stream.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    GET /echo/hello HTTP/1.1\r\n                                │ │
    │  │    ─┬─ ─────┬───── ────┬───                                    │ │
    │  │     │       │          │                                        │ │
    │  │  tokens[0] tokens[1] tokens[2]                                  │ │
    │  │   Method    Path     Version                                    │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: localhost:4221\r\n                                    │ │
    │  │    User-Agent: curl/8.4.0\r\n                                  │ │
    │  │    Accept-Encoding: gzip\r\n                                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (only with Content-Length) ──────────────────────────────┐ │
    │  │    hello                                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TOKENIZING LATE
=============================================================================

The request line is stored raw. Splitting it into method and path happens
when the router asks for them, so a request line like "GARBAGE" still
produces an HTTPRequest; the router then answers 400 Bad Request instead of
the reader aborting the connection.

The line is split on single spaces, exactly like the wire format defines
it. "GET  /x HTTP/1.1" (two spaces) gives tokens ["GET", "", "/x", ...], so
the path is "" and nothing will route.

=============================================================================
HEADER CASE
=============================================================================

Headers keep the case the client sent and are looked up exactly. This is
stricter than RFC 7230 (which says names are case-insensitive), but every
client we care about sends canonical names ("User-Agent",
"Content-Length", "Accept-Encoding").

=============================================================================
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import BinaryIO, Dict, List

from .reader import (
    DEFAULT_MAX_BODY_SIZE,
    DEFAULT_MAX_HEADERS,
    DEFAULT_MAX_LINE_SIZE,
    HTTPParseError,
    read_body,
    read_headers,
    read_line,
)

__all__ = ["HTTPRequest", "RequestParser", "HTTPParseError", "parse_request"]


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request. Immutable once built.

    Attributes:
        request_line:   The raw first line, terminator stripped
                        ("GET /echo/abc HTTP/1.1")
        headers:        Header name → value, case preserved
        body:           Exactly Content-Length bytes, or b""
        client_address: (ip, port) of the peer, for logging
    """

    request_line: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)

    @property
    def tokens(self) -> List[str]:
        """The request line split on single spaces."""
        return self.request_line.split(" ")

    @property
    def is_well_formed(self) -> bool:
        """A request line needs at least a method and a path."""
        return len(self.tokens) >= 2

    @property
    def method(self) -> str:
        """The HTTP method (first token)."""
        return self.tokens[0]

    @property
    def path(self) -> str:
        """The request target (second token), or "" if missing."""
        tokens = self.tokens
        return tokens[1] if len(tokens) >= 2 else ""

    @property
    def version(self) -> str:
        """The protocol version (third token), or "" if missing."""
        tokens = self.tokens
        return tokens[2] if len(tokens) >= 3 else ""

    @property
    def user_agent(self) -> str:
        """The User-Agent header, or "" if the client sent none."""
        return self.headers.get("User-Agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value by its exact name.

        Example:
            request.get_header("Accept-Encoding")   # "gzip"
            request.get_header("accept-encoding")   # "" (case matters)
        """
        return self.headers.get(name, default)


class RequestParser:
    """
    Reads one complete request off a buffered byte stream.

    =========================================================================
    PARSER FLOW
    =========================================================================

        stream
          │
          ▼
        read_line()     → "POST /files/a.txt HTTP/1.1"
          │
          ▼
        read_headers()  → {"Content-Length": "5", ...}
          │
          ▼
        read_body()     → b"hello"   (only if Content-Length present)
          │
          ▼
        HTTPRequest

    =========================================================================

    Errors from the reader propagate unchanged: ConnectionClosedError when
    the client hangs up early, HTTPParseError when limits are exceeded.
    """

    def __init__(
        self,
        max_line_size: int = DEFAULT_MAX_LINE_SIZE,
        max_headers: int = DEFAULT_MAX_HEADERS,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
    ):
        self.max_line_size = max_line_size
        self.max_headers = max_headers
        self.max_body_size = max_body_size

    def read(
        self,
        stream: BinaryIO,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Read and parse a request from the stream.

        Args:
            stream: Buffered binary stream (e.g. socket.makefile("rb")).
            client_address: Peer (ip, port) attached to the request.

        Returns:
            The parsed HTTPRequest.
        """
        request_line = read_line(stream, self.max_line_size)
        headers = read_headers(stream, self.max_line_size, self.max_headers)
        body = read_body(headers, stream, self.max_body_size)

        return HTTPRequest(
            request_line=request_line,
            headers=headers,
            body=body,
            client_address=client_address,
        )


def parse_request(data: bytes, client_address: tuple[str, int] = ("", 0)) -> HTTPRequest:
    """
    Parse a complete request held in memory.

    Convenience wrapper around RequestParser for tests and tools.
    """
    return RequestParser().read(BytesIO(data), client_address)
