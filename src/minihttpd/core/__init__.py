"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Binds the listening TCP socket (default 0.0.0.0:4221)            │
    │  • Runs the accept() loop                                           │
    │  • Stops on SIGTERM / SIGINT or shutdown()                          │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Hands off new connections
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Fixed number of worker threads                                   │
    │  • Bounded queue; a full queue means 503                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Worker serves the connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Buffered reads over the client socket                            │
    │  • One request, one response, then close                            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",     # Listening socket + accept loop
    "Connection",       # One client socket
    "ConnectionState",  # Connection lifecycle states
    "ThreadPool",       # Worker threads
]
