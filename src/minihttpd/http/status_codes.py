"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can produce, each paired with its reason
phrase for the response status line.

=============================================================================
WHERE EACH CODE COMES FROM
=============================================================================

    ┌────────┬─────────────────────────┬──────────────────────────────────┐
    │  Code  │  Reason phrase          │  Produced by                     │
    ├────────┼─────────────────────────┼──────────────────────────────────┤
    │  200   │  OK                     │  /, /echo, /user-agent, GET file │
    │  201   │  Created                │  POST /files/<name>              │
    │  400   │  Bad Request            │  bad request line, bad method,   │
    │        │                         │  bad Content-Length, unsafe name │
    │  404   │  Not Found              │  unknown path, missing file      │
    │  408   │  Request Timeout        │  client too slow (read deadline) │
    │  500   │  Internal Server Error  │  file write failure, bugs        │
    │  503   │  Service Unavailable    │  worker pool saturated           │
    └────────┴─────────────────────────┴──────────────────────────────────┘

The status line is always "HTTP/1.1 <code> <phrase>". A server that writes
"OK" after every code (e.g. "HTTP/1.1 404 OK") is technically tolerated by
most clients, since RFC 7230 says the phrase is informational, but it is
confusing in logs and packet captures. We always send the right phrase.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200                        # Request handled, body may be empty
    CREATED = 201                   # File written (POST /files/<name>)

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400               # Malformed request or unsupported method
    NOT_FOUND = 404                 # Unknown path or missing file
    REQUEST_TIMEOUT = 408           # Read deadline exceeded

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500     # Storage write failed / unexpected error
    SERVICE_UNAVAILABLE = 503       # All workers busy and queue full

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES[self]

    @property
    def is_server_error(self) -> bool:
        """Check if this is a 5xx (server error) status code."""
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
