"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them byte-for-byte.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │        │     │   │                                              │ │
    │  │    Version  Code Phrase                                        │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (fixed order, all optional) ──────────────────────────┐ │
    │  │                                                                 │ │
    │  │    Content-Type: text/plain\r\n                                │ │
    │  │    Content-Encoding: gzip\r\n       ← only when compressed     │ │
    │  │    Content-Length: 23\r\n           ← added automatically      │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE (separator) ───────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    abc                                                          │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHICH RESPONSES CARRY HEADERS?
=============================================================================

    ┌──────────────────────────────┬──────────────────────────────────────┐
    │  Response                    │  Wire bytes                          │
    ├──────────────────────────────┼──────────────────────────────────────┤
    │  GET /                       │  HTTP/1.1 200 OK\r\n\r\n             │
    │  POST /files/x (written)     │  HTTP/1.1 201 Created\r\n\r\n        │
    │  any error                   │  HTTP/1.1 404 Not Found\r\n\r\n      │
    │  GET /echo/abc               │  HTTP/1.1 200 OK\r\n                 │
    │                              │  Content-Type: text/plain\r\n        │
    │                              │  Content-Length: 3\r\n\r\nabc        │
    └──────────────────────────────┴──────────────────────────────────────┘

Content-Length is added only when the response has a Content-Type. A
response without one has no body, and since the server closes the
connection after every response the client knows where it ends anyway.

No Date or Server header is sent, so the same request always produces the
same bytes.

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .text("abc")
        .build())

For the common cases use the one-liners at the bottom of this module:

    ok_text("abc"), ok_bytes(data), created(), not_found(), ...

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from .reader import HEADER_ENCODING
from .status_codes import HTTPStatus


CONTENT_TYPE = "Content-Type"
CONTENT_ENCODING = "Content-Encoding"
CONTENT_LENGTH = "Content-Length"

TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"

# Serialization order of the headers we know about; anything else follows
_HEADER_ORDER = (CONTENT_TYPE, CONTENT_ENCODING, CONTENT_LENGTH)


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
            │                       │                        │
        HTTPResponse(            b"HTTP/1.1 200 OK\\r\\n   sock.sendall(
          status=200,              Content-Type: ...       response_bytes
          headers={...},           \\r\\n                )
          body=b"abc"              abc"
        )

    =========================================================================
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_type(self) -> str:
        """The Content-Type header, or "" if none was set."""
        return self.headers.get(CONTENT_TYPE, "")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body. Strings are encoded byte-for-byte as latin-1."""
        if isinstance(body, str):
            self.body = body.encode(HEADER_ENCODING)
        else:
            self.body = body
        return self

    def wire_headers(self) -> List[Tuple[str, str]]:
        """
        Get the headers exactly as they will be written.

        Content-Type, Content-Encoding and Content-Length come first, in
        that order. Content-Length is computed from the body when a
        Content-Type is present and no explicit length was set.
        """
        headers = dict(self.headers)

        if CONTENT_TYPE in headers and CONTENT_LENGTH not in headers:
            headers[CONTENT_LENGTH] = str(len(self.body))

        ordered = [(name, headers.pop(name)) for name in _HEADER_ORDER if name in headers]
        ordered.extend(headers.items())
        return ordered

    def to_bytes(self) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\\r\\n              ← Status line
            Content-Type: text/plain\\r\\n
            Content-Length: 3\\r\\n            ← Auto-calculated
            \\r\\n                             ← Empty line (separator)
            abc                              ← Body bytes

        =====================================================================

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in self.wire_headers())
        lines.append("")

        head = "\r\n".join(lines).encode(HEADER_ENCODING) + b"\r\n"
        return head + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, enabling chaining:

        builder.status(200).content_type("text/plain").body(b"abc").build()
        ────────┬──────────────────────┬───────────────────┬──────────┬───
                └──────────────────────┴───────────────────┘          │
                         return 'self'                       returns HTTPResponse
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    # =========================================================================
    # STATUS / HEADERS
    # =========================================================================

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header(CONTENT_TYPE, content_type)

    # =========================================================================
    # BODY METHODS
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body without touching Content-Type.

        Strings are encoded as latin-1 so text that came in off the wire
        goes back out unchanged.
        """
        if isinstance(body, str):
            self._body = body.encode(HEADER_ENCODING)
        else:
            self._body = body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Set a text/plain body."""
        return self.body(text).content_type(TEXT_PLAIN)

    def octet_stream(self, data: bytes) -> "ResponseBuilder":
        """Set an application/octet-stream body (file contents)."""
        return self.body(data).content_type(OCTET_STREAM)

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        """Build and return the HTTPResponse object."""
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Quick one-liners for the responses this server sends.
#
#     return ok_text(request.user_agent)
#     return not_found()
#
# =============================================================================

def ok_text(text: str) -> HTTPResponse:
    """200 OK with a text/plain body."""
    return ResponseBuilder().status(HTTPStatus.OK).text(text).build()


def ok_bytes(data: bytes) -> HTTPResponse:
    """200 OK with an application/octet-stream body."""
    return ResponseBuilder().status(HTTPStatus.OK).octet_stream(data).build()


def empty(status: HTTPStatus) -> HTTPResponse:
    """
    A bare status line with no headers and no body.

        empty(HTTPStatus.NOT_FOUND).to_bytes()
        # b"HTTP/1.1 404 Not Found\\r\\n\\r\\n"
    """
    return HTTPResponse(status=status)


def ok() -> HTTPResponse:
    """200 OK, no body (the root path)."""
    return empty(HTTPStatus.OK)


def created() -> HTTPResponse:
    """201 Created, no body (file written)."""
    return empty(HTTPStatus.CREATED)


def bad_request() -> HTTPResponse:
    """400 Bad Request."""
    return empty(HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    """404 Not Found."""
    return empty(HTTPStatus.NOT_FOUND)


def request_timeout() -> HTTPResponse:
    """408 Request Timeout."""
    return empty(HTTPStatus.REQUEST_TIMEOUT)


def internal_error() -> HTTPResponse:
    """500 Internal Server Error. Never exposes details to the client."""
    return empty(HTTPStatus.INTERNAL_SERVER_ERROR)


def service_unavailable() -> HTTPResponse:
    """503 Service Unavailable."""
    return empty(HTTPStatus.SERVICE_UNAVAILABLE)
