"""
=============================================================================
HANDLERS MODULE
=============================================================================

The endpoint handlers and the factory that wires them into a Router.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → HANDLER → RESPONSE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Route        Method   Handler                  Response           │
    │   ──────────   ──────   ──────────────────────   ────────────────── │
    │   ECHO         GET      handle_echo              200 text/plain     │
    │   USER_AGENT   GET      handle_user_agent        200 text/plain     │
    │   FILES        GET      FileHandler.get          200 octet-stream   │
    │   FILES        POST     FileHandler.post         201 (no body)      │
    │                                                                      │
    │   Every handler has the signature                                   │
    │       handler(request: HTTPRequest, match: RouteMatch) → HTTPResponse│
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Usage:

    from minihttpd.handlers import create_router

    router = create_router("/tmp/data")
    response = router.dispatch(request)

=============================================================================
"""

from pathlib import Path
from typing import Optional, Union

from ..http.router import Route, RouteTable, Router, DEFAULT_ROUTE_TABLE
from .files import FileHandler, FileStore, StorageError, UnsafePathError
from .text import handle_echo, handle_user_agent


def create_router(
    directory: Optional[Union[str, Path]] = None,
    table: RouteTable = DEFAULT_ROUTE_TABLE,
) -> Router:
    """
    Build the server's router.

    Args:
        directory: Storage root for /files, or None to disable storage.
        table: Prefix table (the default covers /echo, /user-agent, /files).

    Returns:
        A Router with every endpoint registered.
    """
    store = FileStore(directory) if directory is not None else None
    files = FileHandler(store)

    return (Router(table)
        .add_route(Route.ECHO, "GET", handle_echo)
        .add_route(Route.USER_AGENT, "GET", handle_user_agent)
        .add_route(Route.FILES, "GET", files.get)
        .add_route(Route.FILES, "POST", files.post))


__all__ = [
    "create_router",
    "FileHandler",
    "FileStore",
    "StorageError",
    "UnsafePathError",
    "handle_echo",
    "handle_user_agent",
]
