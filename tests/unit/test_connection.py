"""
Unit tests for Connection, using a local socket pair.
"""

import socket
import threading
import time

import pytest

from minihttpd.core.connection import DRAIN_TIMEOUT, Connection, ConnectionState
from minihttpd.http.reader import ConnectionClosedError
from minihttpd.http.request import RequestParser


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    client_side.close()
    server_side.close()


class TestConnection:
    """Tests for Connection."""

    def test_read_request(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)

        client_side.sendall(b"POST /files/a HTTP/1.1\r\nContent-Length: 3\r\n\r\nabc")
        request = conn.read_request(RequestParser())

        assert request.body == b"abc"
        assert request.client_address == ("127.0.0.1", 40000)
        assert conn.state == ConnectionState.PROCESSING

    def test_request_split_across_sends(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)

        client_side.sendall(b"GET /echo/ab")
        client_side.sendall(b"c HTTP/1.1\r\nUser-")
        client_side.sendall(b"Agent: x\r\n\r\n")

        request = conn.read_request(RequestParser())

        assert request.path == "/echo/abc"
        assert request.user_agent == "x"

    def test_client_hangs_up(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)

        client_side.sendall(b"GET / HTTP/1.1\r\n")
        client_side.shutdown(socket.SHUT_WR)

        with pytest.raises(ConnectionClosedError):
            conn.read_request(RequestParser())

    def test_read_timeout(self, socket_pair):
        server_side, _ = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=0.2)

        with pytest.raises(socket.timeout):
            conn.read_request(RequestParser())

    def test_send_and_close(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.settimeout(2.0)

        with Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0) as conn:
            assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n") is True

        assert conn.state == ConnectionState.CLOSED
        assert client_side.recv(1024) == b"HTTP/1.1 200 OK\r\n\r\n"
        assert client_side.recv(1024) == b""

    def test_close_is_idempotent(self, socket_pair):
        server_side, _ = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_close_stops_draining_a_trickling_client(self, socket_pair):
        """A client that keeps sending after its request cannot stall close()."""
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)
        stop = threading.Event()

        def trickle():
            while not stop.is_set():
                try:
                    client_side.send(b"x")
                except OSError:
                    return
                time.sleep(0.1)

        sender = threading.Thread(target=trickle, daemon=True)
        sender.start()

        started = time.monotonic()
        conn.close()
        elapsed = time.monotonic() - started

        stop.set()
        sender.join(timeout=2.0)

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < DRAIN_TIMEOUT + 0.5

    def test_close_without_drain_does_not_wait(self, socket_pair):
        server_side, _ = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)

        started = time.monotonic()
        conn.close(drain_timeout=0)

        assert time.monotonic() - started < 0.2
        assert conn.state == ConnectionState.CLOSED
