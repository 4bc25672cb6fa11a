"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: a buffered read stream for the request,
sendall() for the response, and a proper TCP close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A client that sends

        POST /files/a.txt HTTP/1.1\\r\\nContent-Length: 5\\r\\n\\r\\nhello

may arrive as one recv() or as five. Rather than buffering by hand we wrap
the socket in a buffered binary file:

        stream = sock.makefile("rb")

and let http.reader pull lines (readline) and exact byte counts (read) off
it. Whatever is left in the buffer after the body is simply discarded:
this server answers one request per connection.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                                   │
     │             │  EOF / timeout / parse error      │
     │             ▼                                   ▼
     └──────────► CLOSING ◄────────────────────────────┘
                    │
                    ▼
                  CLOSED

There is no keep-alive state. After the response is written (or the read
fails) the connection is closed.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from ..http.request import HTTPRequest, RequestParser


logger = logging.getLogger(__name__)

# Upper bounds on draining unread client bytes during close()
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and debugging."""

    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Reading request line, headers, body
    PROCESSING = "processing"  # Request parsed, handler chain running
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED READING                                                 │
    │     └── sock.makefile("rb") handles partial recv()s for us          │
    │                                                                      │
    │  2. DEADLINES                                                        │
    │     └── One socket timeout covers every read and write              │
    │     └── A slow client gets socket.timeout → 408                     │
    │                                                                      │
    │  3. GRACEFUL CLOSE                                                   │
    │     └── shutdown(SHUT_WR), drain, close                              │
    │     └── Never leak file descriptors                                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier for log lines.
        state: Current connection state.
        timeout: Socket read/write deadline in seconds (None = blocking).
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = 30.0

    _stream: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def stream(self) -> BinaryIO:
        """Buffered binary reader over the socket, created on first use."""
        if self._stream is None:
            self._stream = self.socket.makefile("rb")
        return self._stream

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self, parser: RequestParser) -> HTTPRequest:
        """
        Read exactly one request off the connection.

        Raises:
            ConnectionClosedError: The client hung up mid-request.
            HTTPParseError: The request is malformed or too large.
            socket.timeout: The client was too slow.
            OSError: The connection broke.
        """
        self.state = ConnectionState.READING
        request = parser.read(self.stream, self.address)
        self.state = ConnectionState.PROCESSING
        return request

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall(): plain send() may write only part of the data.

        Returns:
            True if send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain_timeout: float = DRAIN_TIMEOUT):
        """
        Close the connection gracefully.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    TCP Close Sequence                            │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   Server                              Client                     │
        │      │   FIN ──────────────────────────► │  (shutdown SHUT_WR)  │
        │      │ ◄───────────────────────── ACK   │                       │
        │      │ ◄───────────────────────── FIN   │  (client closes)      │
        │      │   ACK ──────────────────────────► │                       │
        │   (socket closed)                  (socket closed)               │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        The FIN is also how the client learns a header-less response
        (e.g. "HTTP/1.1 404 Not Found\\r\\n\\r\\n") is complete.

        Args:
            drain_timeout: Total seconds to spend reading unread client
                           bytes before closing. 0 reads only what has
                           already arrived, without waiting.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        self._drain(drain_timeout)

        if self._stream is not None:
            try:
                self._stream.close()
            except OSError:
                pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self, budget: float):
        """
        Read and discard what the client sent past the request, so the
        kernel does not answer our close with an RST.

        Bounded by an absolute deadline and DRAIN_LIMIT bytes: a client
        that keeps trickling data cannot hold the connection open.
        """
        deadline = time.monotonic() + budget
        drained = 0

        try:
            while drained < DRAIN_LIMIT:
                # 0.0 switches the socket to non-blocking: recv() then
                # raises instead of waiting once the deadline has passed
                self.socket.settimeout(max(deadline - time.monotonic(), 0.0))
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # timeout, would-block or reset: stop draining

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
            with Connection(sock, addr) as conn:
                request = conn.read_request(parser)
                conn.send_response(response.to_bytes())
            # closed here, even on error
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
