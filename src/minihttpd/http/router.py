"""
=============================================================================
URL ROUTER
=============================================================================

Maps a request to a handler in two steps:

    1. resolve_route(path)   → RouteMatch  (which endpoint, what remains)
    2. Router.dispatch()     → handler for (route, method), or an error

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Request line: "GET /echo/abc HTTP/1.1"                            │
    │        │                                                             │
    │        ▼                                                             │
    │   fewer than 2 tokens? ───────────────────────► 400 Bad Request      │
    │        │                                                             │
    │        ▼                                                             │
    │   resolve_route("/echo/abc")                                        │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  "/"            → ROOT          ──────────► 200 OK (empty)   │   │
    │   │  "/echo"        → ECHO          ← first prefix that matches  │   │
    │   │  "/user-agent"  → USER_AGENT                                 │   │
    │   │  "/files"       → FILES                                      │   │
    │   │  anything else  → NOT_FOUND     ──────────► 404 Not Found    │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼  RouteMatch(ECHO, prefix="/echo", remainder="abc")         │
    │                                                                      │
    │   handler for (ECHO, "GET")?                                        │
    │        ├── yes → handler(request, match)                            │
    │        └── no  ───────────────────────────────► 400 Bad Request      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PREFIX MATCHING
=============================================================================

Matching is a plain startswith() in table order, so "/echoes" routes to
ECHO and "/files-old" routes to FILES. The remainder is what follows the
prefix, minus ONE leading slash:

    "/echo/abc"      → "abc"
    "/echo/a/b"      → "a/b"
    "/echo"          → ""
    "/files//x"      → "/x"

An unsupported method on a known path is 400 (there is no 405).

=============================================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from .request import HTTPRequest
from .response import HTTPResponse, bad_request, not_found, ok


logger = logging.getLogger(__name__)


class Route(Enum):
    """The endpoints this server knows about."""

    ROOT = "root"
    ECHO = "echo"
    USER_AGENT = "user-agent"
    FILES = "files"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class RouteMatch:
    """
    Result of resolving a path.

    Example:
        resolve_route("/files/a.txt")
        # RouteMatch(route=Route.FILES, prefix="/files", remainder="a.txt")
    """

    route: Route
    prefix: str = ""
    remainder: str = ""


# Handler: takes the request and how its path was matched
Handler = Callable[[HTTPRequest, RouteMatch], HTTPResponse]


@dataclass(frozen=True)
class RouteTable:
    """
    Ordered prefix → route table. Built once, shared by every worker.

    The first prefix the path starts with wins.
    """

    prefixes: Tuple[Tuple[str, Route], ...] = (
        ("/echo", Route.ECHO),
        ("/user-agent", Route.USER_AGENT),
        ("/files", Route.FILES),
    )
    root: str = "/"

    def resolve(self, path: str) -> RouteMatch:
        """Resolve a path to a RouteMatch. Never raises."""
        if path == self.root:
            return RouteMatch(Route.ROOT, prefix=self.root)

        for prefix, route in self.prefixes:
            if path.startswith(prefix):
                remainder = path[len(prefix):]
                if remainder.startswith("/"):
                    remainder = remainder[1:]
                return RouteMatch(route, prefix=prefix, remainder=remainder)

        return RouteMatch(Route.NOT_FOUND)


DEFAULT_ROUTE_TABLE = RouteTable()


def resolve_route(path: str, table: RouteTable = DEFAULT_ROUTE_TABLE) -> RouteMatch:
    """
    Resolve a request path against the route table.

    Example:
        resolve_route("/")            # RouteMatch(Route.ROOT, "/", "")
        resolve_route("/echo/hi")     # RouteMatch(Route.ECHO, "/echo", "hi")
        resolve_route("/nope")        # RouteMatch(Route.NOT_FOUND, "", "")
    """
    return table.resolve(path)


class Router:
    """
    Dispatches requests to handlers by (route, method).

    ==========================================================================
    USAGE
    ==========================================================================

        router = Router()
        router.add_route(Route.ECHO, "GET", handle_echo)
        router.add_route(Route.FILES, "POST", files.post)

        response = router.dispatch(request)

    ROOT and NOT_FOUND are answered by the router itself and cannot be
    given handlers.

    ==========================================================================
    """

    def __init__(self, table: RouteTable = DEFAULT_ROUTE_TABLE):
        self.table = table
        self._handlers: Dict[Tuple[Route, str], Handler] = {}

    def add_route(self, route: Route, method: str, handler: Handler) -> "Router":
        """
        Register a handler for a route and method.

        Returns:
            Self for method chaining
        """
        if route in (Route.ROOT, Route.NOT_FOUND):
            raise ValueError(f"{route} is answered by the router itself")

        self._handlers[(route, method)] = handler
        logger.debug(f"Registered {method} {route.value} → {getattr(handler, '__name__', handler)}")
        return self

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        This is the final handler of the middleware pipeline.

        Returns:
            The handler's response, or 200/400/404 decided here.
        """
        if not request.is_well_formed:
            logger.debug(f"Malformed request line: {request.request_line!r}")
            return bad_request()

        match = self.table.resolve(request.path)

        if match.route is Route.ROOT:
            return ok()

        if match.route is Route.NOT_FOUND:
            return not_found()

        handler = self._handlers.get((match.route, request.method))
        if handler is None:
            logger.debug(f"No handler for {request.method} {match.route.value}")
            return bad_request()

        return handler(request, match)

    @property
    def routes(self) -> Dict[Tuple[Route, str], Handler]:
        """Registered (route, method) → handler pairs."""
        return dict(self._handlers)
