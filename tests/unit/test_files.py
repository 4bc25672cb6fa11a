"""
Unit tests for file storage and the /files, /echo and /user-agent handlers.
"""

import os
from pathlib import Path

import pytest

from minihttpd.handlers import (
    FileHandler,
    FileStore,
    StorageError,
    UnsafePathError,
    create_router,
    handle_echo,
    handle_user_agent,
)
from minihttpd.http.request import HTTPRequest
from minihttpd.http.response import HTTPStatus
from minihttpd.http.router import Route, resolve_route


def make_request(request_line: str, body: bytes = b"", **headers) -> HTTPRequest:
    return HTTPRequest(request_line=request_line, headers=headers, body=body)


def dispatch(handler, request: HTTPRequest):
    return handler(request, resolve_route(request.path))


class TestFileStore:
    """Tests for FileStore."""

    def test_write_then_read(self, storage_dir: Path):
        store = FileStore(storage_dir)
        path = store.write_bytes("a.txt", b"hello")

        assert path == storage_dir.resolve() / "a.txt"
        assert store.read_bytes("a.txt") == b"hello"

    def test_write_truncates(self, storage_dir: Path):
        store = FileStore(storage_dir)
        store.write_bytes("a.txt", b"a long first version")
        store.write_bytes("a.txt", b"short")

        assert (storage_dir / "a.txt").read_bytes() == b"short"

    def test_read_is_byte_exact(self, storage_dir: Path):
        data = b"line1\r\nline2\n\x00\xff"
        (storage_dir / "blob.bin").write_bytes(data)

        assert FileStore(storage_dir).read_bytes("blob.bin") == data

    def test_read_missing(self, storage_dir: Path):
        with pytest.raises(StorageError):
            FileStore(storage_dir).read_bytes("missing.txt")

    def test_read_directory(self, storage_dir: Path):
        (storage_dir / "sub").mkdir()

        with pytest.raises(StorageError):
            FileStore(storage_dir).read_bytes("sub")

    @pytest.mark.parametrize("name", ["", "..", "../x", "a/../../x", "/etc/passwd", "."])
    def test_unsafe_names(self, storage_dir: Path, name):
        with pytest.raises(UnsafePathError):
            FileStore(storage_dir).resolve(name)

    def test_traversal_does_not_write_outside(self, storage_dir: Path):
        with pytest.raises(UnsafePathError):
            FileStore(storage_dir).write_bytes("../escaped.txt", b"x")

        assert not (storage_dir.parent / "escaped.txt").exists()

    def test_inner_dotdot_allowed(self, storage_dir: Path):
        store = FileStore(storage_dir)
        (storage_dir / "sub").mkdir()

        assert store.resolve("sub/../a.txt") == storage_dir.resolve() / "a.txt"

    def test_write_needs_existing_parent(self, storage_dir: Path):
        with pytest.raises(StorageError):
            FileStore(storage_dir).write_bytes("nodir/a.txt", b"x")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_symlink_out_of_root_rejected(self, storage_dir: Path, tmp_path: Path):
        outside = tmp_path / "outside.txt"
        outside.write_bytes(b"secret")
        (storage_dir / "link").symlink_to(outside)

        with pytest.raises(UnsafePathError):
            FileStore(storage_dir).read_bytes("link")


class TestFileHandler:
    """Tests for FileHandler.get() / .post()."""

    def test_get_existing(self, storage_dir: Path):
        (storage_dir / "foo").write_bytes(b"Hello, World!")
        handler = FileHandler(FileStore(storage_dir))

        response = dispatch(handler.get, make_request("GET /files/foo HTTP/1.1"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.body == b"Hello, World!"

    def test_get_missing(self, storage_dir: Path):
        handler = FileHandler(FileStore(storage_dir))
        response = dispatch(handler.get, make_request("GET /files/missing.txt HTTP/1.1"))

        assert response.status == HTTPStatus.NOT_FOUND

    def test_get_traversal_is_not_found(self, storage_dir: Path):
        handler = FileHandler(FileStore(storage_dir))
        response = dispatch(handler.get, make_request("GET /files/../x HTTP/1.1"))

        assert response.status == HTTPStatus.NOT_FOUND

    def test_get_without_store(self):
        response = dispatch(FileHandler().get, make_request("GET /files/a HTTP/1.1"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_post_creates(self, storage_dir: Path):
        handler = FileHandler(FileStore(storage_dir))
        response = dispatch(handler.post, make_request("POST /files/a.txt HTTP/1.1", body=b"hello"))

        assert response.status == HTTPStatus.CREATED
        assert response.to_bytes() == b"HTTP/1.1 201 Created\r\n\r\n"
        assert (storage_dir / "a.txt").read_bytes() == b"hello"

    def test_post_empty_body(self, storage_dir: Path):
        handler = FileHandler(FileStore(storage_dir))
        response = dispatch(handler.post, make_request("POST /files/empty HTTP/1.1"))

        assert response.status == HTTPStatus.CREATED
        assert (storage_dir / "empty").read_bytes() == b""

    def test_post_traversal_is_bad_request(self, storage_dir: Path):
        handler = FileHandler(FileStore(storage_dir))
        response = dispatch(handler.post, make_request("POST /files/../x HTTP/1.1", body=b"x"))

        assert response.status == HTTPStatus.BAD_REQUEST

    def test_post_write_failure(self, storage_dir: Path):
        (storage_dir / "sub").mkdir()
        handler = FileHandler(FileStore(storage_dir))
        response = dispatch(handler.post, make_request("POST /files/sub HTTP/1.1", body=b"x"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_post_without_store(self):
        response = dispatch(FileHandler().post, make_request("POST /files/a HTTP/1.1", body=b"x"))
        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR


class TestTextHandlers:
    """Tests for handle_echo() and handle_user_agent()."""

    def test_echo(self):
        response = dispatch(handle_echo, make_request("GET /echo/abc HTTP/1.1"))

        assert response.status == HTTPStatus.OK
        assert response.headers == {"Content-Type": "text/plain"}
        assert response.body == b"abc"

    def test_echo_keeps_inner_slashes(self):
        response = dispatch(handle_echo, make_request("GET /echo/a/b/c HTTP/1.1"))
        assert response.body == b"a/b/c"

    def test_echo_empty(self):
        response = dispatch(handle_echo, make_request("GET /echo HTTP/1.1"))
        assert response.body == b""

    def test_user_agent(self):
        request = make_request("GET /user-agent HTTP/1.1", **{"User-Agent": "foobar/1.2.3"})
        response = dispatch(handle_user_agent, request)

        assert response.headers["Content-Type"] == "text/plain"
        assert response.body == b"foobar/1.2.3"

    def test_user_agent_missing(self):
        response = dispatch(handle_user_agent, make_request("GET /user-agent HTTP/1.1"))

        assert response.status == HTTPStatus.OK
        assert response.body == b""


class TestCreateRouter:
    """Tests for create_router()."""

    def test_registered_routes(self, storage_dir: Path):
        router = create_router(storage_dir)

        assert set(router.routes) == {
            (Route.ECHO, "GET"),
            (Route.USER_AGENT, "GET"),
            (Route.FILES, "GET"),
            (Route.FILES, "POST"),
        }

    def test_post_echo_is_bad_request(self):
        response = create_router().dispatch(make_request("POST /echo/abc HTTP/1.1"))
        assert response.status == HTTPStatus.BAD_REQUEST

    def test_round_trip_through_router(self, storage_dir: Path):
        router = create_router(str(storage_dir))

        router.dispatch(make_request("POST /files/r.txt HTTP/1.1", body=b"data"))
        response = router.dispatch(make_request("GET /files/r.txt HTTP/1.1"))

        assert response.body == b"data"
