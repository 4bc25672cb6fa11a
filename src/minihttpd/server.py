"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the pieces together: socket server, thread pool, request parser,
middleware pipeline and router.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │ MiniHTTPServer  │                          │
    │                        │ (Orchestrator)  │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │    Router    │        │
    │    │ (Networking) │    │ (Concurrency)│    │ (Dispatching)│        │
    │    └──────┬───────┘    └──────────────┘    └──────┬───────┘        │
    │           ▼                                       ▼                 │
    │    ┌──────────────┐                        ┌──────────────┐        │
    │    │  Connection  │                        │   Handlers   │        │
    │    └──────────────┘                        └──────────────┘        │
    │                                                                      │
    │           ┌─────────────────────────────────────────┐               │
    │           │  Logging → Compression → Router         │               │
    │           └─────────────────────────────────────────┘               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE (one request per connection)
=============================================================================

    1. SocketServer accepts the TCP connection
    2. ThreadPool queues it (full → 503 from the accept thread)
    3. Worker reads request line, headers and body off the stream
    4. Middleware: access log, then content negotiation
    5. Router dispatches to a handler
    6. HTTPResponse.to_bytes() → sendall()
    7. Connection closed

=============================================================================
FAILURES AND WHAT THE CLIENT SEES
=============================================================================

    ┌──────────────────────────────────┬─────────────────────────────────┐
    │  Failure                         │  Client sees                    │
    ├──────────────────────────────────┼─────────────────────────────────┤
    │  Hung up / reset while reading   │  nothing (connection closed)    │
    │  Too slow (socket timeout)       │  408 Request Timeout            │
    │  Line too long, bad length       │  400 Bad Request                │
    │  Handler raised                  │  500 Internal Server Error      │
    │  All workers busy, queue full    │  503 Service Unavailable        │
    └──────────────────────────────────┴─────────────────────────────────┘

Every failure ends its own connection only. Nothing is retried.

=============================================================================
"""

import logging
import socket
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .handlers import create_router
from .http import (
    HTTPRequest, RequestParser, HTTPParseError, RequestReadError,
    HTTPResponse, HTTPStatus, Router,
    internal_error, request_timeout, service_unavailable,
)
from .http.response import empty
from .middleware import (
    MiddlewarePipeline, Middleware, LoggingMiddleware, CompressionMiddleware,
)


logger = logging.getLogger(__name__)


class MiniHTTPServer:
    """
    The HTTP/1.1 server.

    =========================================================================
    USAGE
    =========================================================================

        config = ServerConfig(directory="/tmp/data")
        server = MiniHTTPServer(config)
        server.run()            # blocks until SIGINT/SIGTERM or stop()

    From another thread (tests):

        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.ready.wait(5)
        host, port = server.address
        ...
        server.stop()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        router: Optional[Router] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().
            router: Router to dispatch to. Defaults to the standard
                    endpoints with config.directory as storage root.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(
            max_line_size=self.config.max_line_size,
            max_headers=self.config.max_headers,
            max_body_size=self.config.max_body_size,
        )

        self._router = router or create_router(self.config.directory)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._middleware.add(CompressionMiddleware(encodings=self.config.encodings))

        # middleware.wrap(router.dispatch), built in run()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "MiniHTTPServer":
        """
        Add middleware inside the built-in ones (closest to the router).

        Must be called before run().
        """
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); reports the real port when port=0."""
        return self._socket_server.address

    @property
    def ready(self):
        """threading.Event set once the server is accepting connections."""
        return self._socket_server.ready

    @property
    def stats(self) -> dict:
        return self._thread_pool.stats

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def bind(self):
        """
        Bind the listening socket without serving yet.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket_server.bind()

    def run(self):
        """
        Start the server (blocking).

        Binds if bind() was not called already, then serves until stop()
        or a signal.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._setup_logging()
        self.bind()

        self._handler = self._middleware.wrap(self._router.dispatch)
        self._thread_pool.start()

        host, port = self.address
        logger.info(
            f"Serving on {host}:{port} "
            f"(workers={self.config.max_workers}, directory={self.config.directory})"
        )

        try:
            self._socket_server.serve_forever(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask the server to stop. Returns immediately; run() unwinds."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("minihttpd").setLevel(level)

    def _shutdown(self):
        """
        Graceful shutdown.

            1. Stop accepting (the accept loop has already exited)
            2. Let queued connections finish (bounded by their timeouts)
            3. Stop the workers
        """
        logger.info("Shutting down server...")
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through middleware and router.

        Any exception from a handler becomes 500.
        """
        if self._handler is None:
            self._handler = self._middleware.wrap(self._router.dispatch)

        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.request_line!r}: {e}")
            return internal_error()

    def _handle_connection(self, conn: Connection):
        """
        Queue a connection for a worker (runs in the accept thread).

        If the pool is saturated the client gets 503 right away. The close
        only discards bytes that have already arrived, so a slow client
        never blocks the accept loop.
        """
        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting {conn.client_ip}")
            try:
                conn.send_response(service_unavailable().to_bytes())
            finally:
                conn.close(drain_timeout=0)

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request (runs in a worker thread).

        The connection is always closed on the way out.
        """
        with conn:
            try:
                request = conn.read_request(self._parser)
            except socket.timeout:
                logger.warning(f"[{conn.id}] Read timed out after {self.config.timeout}s")
                conn.send_response(request_timeout().to_bytes())
                return
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                conn.send_response(empty(_error_status(e.status_code)).to_bytes())
                return
            except RequestReadError as e:
                logger.debug(f"[{conn.id}] {e}")
                return
            except OSError as e:
                logger.warning(f"[{conn.id}] Connection error: {e}")
                return

            response = self.handle_request(request)
            conn.send_response(response.to_bytes())


def _error_status(code: int) -> HTTPStatus:
    try:
        return HTTPStatus(code)
    except ValueError:
        return HTTPStatus.BAD_REQUEST


def create_app(config: Optional[ServerConfig] = None) -> MiniHTTPServer:
    """
    Create a server instance.

    Example:
        app = create_app(ServerConfig(directory="/tmp/data"))
        app.run()
    """
    return MiniHTTPServer(config)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Accept → queue (503 when full) → read → middleware → route → respond
# 2. One request per connection, closed afterwards
# 3. Socket timeout → 408, parse error → 400, handler error → 500
# 4. Graceful shutdown drains the pool
# =============================================================================
