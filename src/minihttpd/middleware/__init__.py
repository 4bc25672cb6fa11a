"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting request/response processing wrapped around the router.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MIDDLEWARE PIPELINE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Incoming Request                                                   │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌───────────────────────┐                                         │
    │   │ LoggingMiddleware     │ ──► access log line + timing            │
    │   └──────────┬────────────┘                                         │
    │              ▼                                                       │
    │   ┌───────────────────────┐                                         │
    │   │ CompressionMiddleware │ ──► gzip when Accept-Encoding allows    │
    │   └──────────┬────────────┘                                         │
    │              ▼                                                       │
    │   ┌───────────────────────┐                                         │
    │   │ Router.dispatch       │ ──► /, /echo, /user-agent, /files       │
    │   └───────────────────────┘                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .compression import CompressionMiddleware

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "LoggingMiddleware",
    "RequestLog",
    "CompressionMiddleware",
]
