"""
=============================================================================
FILE HANDLER
=============================================================================

GET and POST for /files/<name>, backed by a directory on disk (the storage
root).

    GET  /files/a.txt     → 200, application/octet-stream, exact file bytes
    POST /files/a.txt     → 201, request body written to <root>/a.txt

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

The name comes straight from the URL, so it can try to climb out of the
storage root:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /files/../../etc/passwd HTTP/1.1                               │
    │                                                                      │
    │  Unprotected:  /srv/data/../../etc/passwd  →  /etc/passwd           │
    │                                                                      │
    │  Our protection:                                                    │
    │  1. Resolve the full path (follow .. and symlinks)                 │
    │  2. Check it is still inside the root                              │
    │  3. If not, refuse (404 on GET, 400 on POST)                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

        full_path = (root / name).resolve()
        full_path.relative_to(root)  # Raises ValueError if outside root

=============================================================================
ERROR MAPPING
=============================================================================

    ┌───────────────────────────────┬──────────────┬───────────────────────┐
    │  Failure                      │  GET         │  POST                 │
    ├───────────────────────────────┼──────────────┼───────────────────────┤
    │  No storage root configured   │  404         │  500                  │
    │  Unsafe name (traversal, "")  │  404         │  400                  │
    │  Missing / unreadable / dir   │  404         │  n/a                  │
    │  Write failed (OSError)       │  n/a         │  500                  │
    └───────────────────────────────┴──────────────┴───────────────────────┘

Writes are not synchronized. Two POSTs to the same name at once may
interleave on disk; the last writer wins.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    bad_request,
    created,
    internal_error,
    not_found,
    ok_bytes,
)
from ..http.router import RouteMatch


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a named blob cannot be read or written."""


class UnsafePathError(StorageError):
    """Raised when a name would resolve outside the storage root."""


class FileStore:
    """
    Named blobs under a storage root directory.

    Example:
        store = FileStore("/tmp/data")
        store.write_bytes("a.txt", b"hello")
        store.read_bytes("a.txt")   # b"hello"
        store.read_bytes("../x")    # raises UnsafePathError
    """

    def __init__(self, root: Union[str, Path]):
        # Resolved once so the containment check compares like with like
        self.root = Path(root).resolve()

        if not self.root.is_dir():
            logger.warning(f"Storage root does not exist (yet): {self.root}")

    def resolve(self, name: str) -> Path:
        """
        Map a name to a path inside the root.

        Raises:
            UnsafePathError: If the name is empty or escapes the root.
        """
        if not name:
            raise UnsafePathError("Empty file name")

        try:
            full_path = (self.root / name).resolve()
        except (OSError, ValueError) as e:
            raise UnsafePathError(f"Cannot resolve {name!r}: {e}") from e

        try:
            full_path.relative_to(self.root)
        except ValueError:
            raise UnsafePathError(f"{name!r} resolves outside the storage root")

        if full_path == self.root:
            raise UnsafePathError(f"{name!r} names the storage root itself")

        return full_path

    def read_bytes(self, name: str) -> bytes:
        """
        Read a blob exactly as stored.

        Raises:
            StorageError: Missing, unreadable, or not a regular file.
        """
        path = self.resolve(name)
        try:
            return path.read_bytes()
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {name!r}: {e}") from e

    def write_bytes(self, name: str, data: bytes) -> Path:
        """
        Create or truncate a blob and write data to it.

        Parent directories are not created.

        Returns:
            The path written.

        Raises:
            UnsafePathError: If the name escapes the root.
            StorageError: If the write fails.
        """
        path = self.resolve(name)
        try:
            with open(path, "wb") as f:
                f.write(data)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot write {name!r}: {e}") from e
        return path


class FileHandler:
    """
    Handlers for GET and POST /files/<name>.

    Usage:
        files = FileHandler(FileStore("/tmp/data"))
        router.add_route(Route.FILES, "GET", files.get)
        router.add_route(Route.FILES, "POST", files.post)

    With store=None (no --directory given) every GET is 404 and every POST
    is 500.
    """

    def __init__(self, store: Optional[FileStore] = None):
        self.store = store

    def get(self, request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
        if self.store is None:
            return not_found()

        try:
            content = self.store.read_bytes(match.remainder)
        except StorageError as e:
            logger.debug(f"GET {request.path}: {e}")
            return not_found()

        return ok_bytes(content)

    def post(self, request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
        if self.store is None:
            logger.warning(f"POST {request.path}: no storage directory configured")
            return internal_error()

        try:
            path = self.store.write_bytes(match.remainder, request.body)
        except UnsafePathError as e:
            logger.warning(f"POST {request.path} rejected: {e}")
            return bad_request()
        except StorageError as e:
            logger.error(f"POST {request.path} failed: {e}")
            return internal_error()

        logger.debug(f"Wrote {len(request.body)} bytes to {path}")
        return created()


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# FileStore keeps every name inside the storage root (resolve + relative_to)
# and turns OS errors into StorageError. FileHandler maps those errors to
# status codes: reads fail as 404, unsafe writes as 400, other writes as 500.
# =============================================================================
