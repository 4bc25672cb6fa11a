"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

The middleware contract and the pipeline that chains middleware around the
router.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        REQUEST / RESPONSE FLOW                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Request ─────────────────────────────────────────►                 │
    │                                                                      │
    │   ┌──────────────┐    ┌──────────────────┐    ┌──────────────┐      │
    │   │   Logging    │───►│   Compression    │───►│    Router    │      │
    │   │  (start clk) │    │ (negotiate enc.) │    │  dispatch()  │      │
    │   └──────▲───────┘    └────────▲─────────┘    └──────┬───────┘      │
    │          │                     │                     │              │
    │   log status, size      gzip the body if         HTTPResponse       │
    │   and duration          the client asked                             │
    │                                                                      │
    │   ◄───────────────────────────────────────────────── Response        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each middleware gets the request and a `next` callable. It may inspect the
request, call `next(request)` to get the response, and return that response
or a modified one.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware or the final handler: request in, response out.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Every middleware implements:

        def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse

    and must call `next(request)` unless it answers the request itself.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming HTTP request
            next: The next handler in the chain

        Returns:
            HTTP response (from next() or produced here)
        """
        pass

    @property
    def name(self) -> str:
        """Get the middleware name for logging."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

    =========================================================================
    PIPELINE ARCHITECTURE
    =========================================================================

        pipeline.add(LoggingMiddleware())       # First added = outermost
        pipeline.add(CompressionMiddleware())   # Last added = closest to handler

            ┌─────────────────────────────────────────────┐
            │  LoggingMiddleware                          │
            │  ┌───────────────────────────────────────┐  │
            │  │  CompressionMiddleware                │  │
            │  │  ┌─────────────────────────────────┐  │  │
            │  │  │    router.dispatch              │  │  │
            │  │  └─────────────────────────────────┘  │  │
            │  └───────────────────────────────────────┘  │
            └─────────────────────────────────────────────┘

    Logging sits outside compression so the access log records the size
    that actually went on the wire.

    =========================================================================
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """
        Add middleware to the pipeline (first added = outermost).

        Returns:
            Self for method chaining
        """
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a handler with all middleware in the pipeline.

        Given [MW1, MW2] and handler the result is MW1 → MW2 → handler.
        We wrap in reverse order so the first-added middleware ends up
        outermost.

        Args:
            handler: The final request handler

        Returns:
            Wrapped handler that runs every middleware
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        """Create a closure that calls middleware with next_handler."""
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
