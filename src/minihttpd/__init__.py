"""
=============================================================================
MINIHTTPD - A Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

A small HTTP/1.1 server: one request per connection, a handful of fixed
endpoints, gzip when the client asks for it.

=============================================================================
ENDPOINTS
=============================================================================

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │  Request                 │  Response                                │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │  GET /                   │  200, no body                            │
    │  GET /echo/<s>           │  200 text/plain, body <s>                │
    │  GET /user-agent         │  200 text/plain, the User-Agent value    │
    │  GET /files/<name>       │  200 application/octet-stream, or 404    │
    │  POST /files/<name>      │  201, body written to <directory>/<name> │
    │  anything else           │  404 (unknown path) / 400 (bad method)   │
    └──────────────────────────┴──────────────────────────────────────────┘

    Accept-Encoding: gzip → Content-Encoding: gzip on any response with
    a body type.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttpd)
    ├── server.py            # MiniHTTPServer
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Sockets, connections, threads
    │   ├── socket_server.py
    │   ├── connection.py
    │   └── thread_pool.py
    ├── http/                # Protocol
    │   ├── reader.py        # Line/header/body reading
    │   ├── request.py       # HTTPRequest + RequestParser
    │   ├── response.py      # HTTPResponse + serialization
    │   ├── encoding.py      # Accept-Encoding negotiation
    │   ├── router.py        # Prefix routing
    │   └── status_codes.py
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   ├── logging.py       # Access log
    │   └── compression.py   # gzip
    └── handlers/
        ├── text.py          # /echo, /user-agent
        └── files.py         # /files

=============================================================================
QUICK START
=============================================================================

    from minihttpd import MiniHTTPServer, ServerConfig

    server = MiniHTTPServer(ServerConfig(port=4221, directory="/tmp/data"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import MiniHTTPServer, create_app
from .config import ServerConfig

__all__ = ["MiniHTTPServer", "ServerConfig", "create_app", "__version__"]
