"""
=============================================================================
REQUEST READER
=============================================================================

Reads the pieces of an HTTP/1.1 request off a buffered byte stream:

    1. the request line        read_line()
    2. the header block        read_headers()
    3. a fixed-length body     read_body()

=============================================================================
WHY READ LINE BY LINE?
=============================================================================

TCP is a byte stream. A single recv() can return half a request line, or a
request line, all the headers AND part of the body at once. Instead of
juggling a byte buffer by hand we wrap the socket in a buffered reader
(socket.makefile("rb")), which gives us two primitives that handle the
buffering for us:

    stream.readline(limit)  → bytes up to and including b"\n"
    stream.read(n)          → up to n bytes (fewer only at end of stream)

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WHAT WE READ, IN ORDER                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /files/a.txt HTTP/1.1\r\n      ← read_line()                 │
    │   Host: localhost:4221\r\n            ┐                             │
    │   Content-Length: 5\r\n               ├ read_headers()              │
    │   \r\n                                ┘ (stops at the empty line)   │
    │   hello                               ← read_body(): exactly 5 bytes│
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ENCODING
=============================================================================

Header bytes are decoded as ISO-8859-1 (latin-1). Every byte maps to exactly
one code point, so a User-Agent or echo path with non-ASCII bytes comes back
out byte-for-byte when we encode the response with the same codec.

=============================================================================
ERRORS
=============================================================================

    RequestReadError / ConnectionClosedError
        The stream ended (or broke) before we got what we needed.
        The connection is aborted; no response is attempted.

    HTTPParseError
        The bytes arrived but make no sense (line too long, negative or
        huge Content-Length). Carries a status code for the error response.

=============================================================================
"""

import logging
import re
from typing import BinaryIO, Dict, Optional


logger = logging.getLogger(__name__)

HEADER_ENCODING = "iso-8859-1"

DEFAULT_MAX_LINE_SIZE = 8192
DEFAULT_MAX_HEADERS = 100
DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024  # 10 MB

CONTENT_LENGTH = "Content-Length"


class RequestReadError(Exception):
    """Raised when the request cannot be read off the connection."""


class ConnectionClosedError(RequestReadError):
    """Raised when the stream ends before a complete request was read."""


class HTTPParseError(Exception):
    """
    Raised when the request bytes are malformed.

    Carries the HTTP status code that should be returned to the client,
    e.g. 400 Bad Request for a negative Content-Length.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


# optional sign, digits, nothing else
_CONTENT_LENGTH_PATTERN = re.compile(r"^[+-]?\d+$")


def read_line(stream: BinaryIO, limit: int = DEFAULT_MAX_LINE_SIZE) -> str:
    """
    Read one line terminated by b"\\n".

    The terminator and any trailing whitespace (the usual \\r) are stripped.

    Args:
        stream: Buffered binary stream positioned at the start of a line.
        limit: Maximum line length in bytes, terminator included.

    Returns:
        The decoded line without its terminator.

    Raises:
        ConnectionClosedError: If the stream ends before b"\\n".
        HTTPParseError: If the line is longer than limit.
    """
    raw = stream.readline(limit)

    if not raw:
        raise ConnectionClosedError("Connection closed before end of line")

    if not raw.endswith(b"\n"):
        if len(raw) >= limit:
            raise HTTPParseError(f"Line exceeds {limit} bytes")
        raise ConnectionClosedError("Connection closed in the middle of a line")

    return raw.decode(HEADER_ENCODING).rstrip()


def read_headers(
    stream: BinaryIO,
    limit: int = DEFAULT_MAX_LINE_SIZE,
    max_headers: int = DEFAULT_MAX_HEADERS,
) -> Dict[str, str]:
    """
    Read header lines until the empty line that ends the header block.

    =====================================================================
    HEADER LINE RULES
    =====================================================================

        "User-Agent: curl/8.4.0"   → {"User-Agent": "curl/8.4.0"}
        "X-Ratio:  1:2  "          → {"X-Ratio": "1:2"}  (first ':' splits)
        "garbage without colon"    → ignored
        "Accept: a" then
        "Accept: b"                → {"Accept": "b"}     (last one wins)

    Header names keep the case the client sent. Lookups are exact:
    headers["user-agent"] will NOT find "User-Agent".

    =====================================================================

    Args:
        stream: Buffered binary stream positioned after the request line.
        limit: Maximum length of a single header line.
        max_headers: Maximum number of header lines accepted.

    Returns:
        Mapping of header name → value.

    Raises:
        ConnectionClosedError: If the stream ends before the empty line.
        HTTPParseError: If a line is too long or there are too many headers.
    """
    headers: Dict[str, str] = {}
    seen = 0

    while True:
        line = read_line(stream, limit).strip()
        if not line:
            return headers

        seen += 1
        if seen > max_headers:
            raise HTTPParseError(f"More than {max_headers} header lines")

        name, sep, value = line.partition(":")
        if not sep:
            logger.debug(f"Ignoring header line without colon: {line!r}")
            continue

        headers[name.strip()] = value.strip()


def parse_content_length(headers: Dict[str, str], max_size: int = DEFAULT_MAX_BODY_SIZE) -> Optional[int]:
    """
    Get the declared body length from the headers.

    Returns:
        The length, or None when the header is absent or not an integer.

    Raises:
        HTTPParseError: If the length is negative or larger than max_size.
    """
    value = headers.get(CONTENT_LENGTH)
    if value is None:
        return None

    if not _CONTENT_LENGTH_PATTERN.match(value):
        logger.debug(f"Ignoring unparseable Content-Length: {value!r}")
        return None

    length = int(value)
    if length < 0:
        raise HTTPParseError(f"Negative Content-Length: {length}")
    if length > max_size:
        raise HTTPParseError(f"Content-Length {length} exceeds limit of {max_size} bytes")

    return length


def read_exactly(stream: BinaryIO, length: int) -> bytes:
    """
    Read exactly length bytes, retrying short reads.

    Raises:
        ConnectionClosedError: If the stream ends first.
    """
    chunks = []
    remaining = length

    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            raise ConnectionClosedError(
                f"Connection closed after {length - remaining} of {length} body bytes"
            )
        chunks.append(chunk)
        remaining -= len(chunk)

    return b"".join(chunks)


def read_body(
    headers: Dict[str, str],
    stream: BinaryIO,
    max_size: int = DEFAULT_MAX_BODY_SIZE,
) -> bytes:
    """
    Read the request body framed by Content-Length.

    No Content-Length (or one we can't parse) means no body: b"" is
    returned and nothing is read from the stream.

    Args:
        headers: Parsed request headers.
        stream: Stream positioned right after the header block.
        max_size: Largest body we are willing to buffer.

    Returns:
        Exactly Content-Length bytes.
    """
    length = parse_content_length(headers, max_size)
    if length is None:
        return b""
    return read_exactly(stream, length)
