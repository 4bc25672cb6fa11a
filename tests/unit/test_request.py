"""
Unit tests for HTTP request parsing.
"""

import pytest

from minihttpd.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)
from minihttpd.http.reader import ConnectionClosedError


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes, make_stream):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.read(make_stream(sample_get_request), ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/user-agent"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.body == b""

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse_request(sample_get_request)

        assert request.user_agent == "pytest/8.0"
        assert request.headers["Host"] == "localhost:4221"
        assert request.get_header("Accept") == "*/*"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test parsing POST request with a body."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/files/notes.txt"
        assert request.body == b"hello\nworld\n"

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0

    def test_request_line_kept_raw(self):
        """Odd request lines are not rejected by the parser."""
        request = parse_request(b"GARBAGE\r\n\r\n")

        assert request.request_line == "GARBAGE"
        assert request.is_well_formed is False

    def test_line_limit(self, make_stream):
        """Test that oversized request lines are rejected."""
        parser = RequestParser(max_line_size=64)
        raw = b"GET /echo/" + b"A" * 200 + b" HTTP/1.1\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.read(make_stream(raw))

        assert exc_info.value.status_code == 400

    def test_body_limit(self, make_stream):
        parser = RequestParser(max_body_size=4)
        raw = b"POST /files/a HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"

        with pytest.raises(HTTPParseError):
            parser.read(make_stream(raw))

    def test_truncated_request(self):
        with pytest.raises(ConnectionClosedError):
            parse_request(b"GET / HTTP/1.1\r\nHost: x\r\n")


class TestHTTPRequest:
    """Tests for HTTPRequest properties."""

    def test_tokens_split_on_single_space(self):
        request = HTTPRequest(request_line="GET  / HTTP/1.1")
        assert request.tokens == ["GET", "", "/", "HTTP/1.1"]

    def test_well_formed_needs_two_tokens(self):
        assert HTTPRequest(request_line="GET /").is_well_formed is True
        assert HTTPRequest(request_line="GET").is_well_formed is False
        assert HTTPRequest(request_line="").is_well_formed is False

    def test_missing_tokens_are_empty(self):
        request = HTTPRequest(request_line="GET")

        assert request.path == ""
        assert request.version == ""

    def test_header_lookup_is_case_sensitive(self):
        request = HTTPRequest(
            request_line="GET /user-agent HTTP/1.1",
            headers={"user-agent": "lower"},
        )

        assert request.user_agent == ""
        assert request.get_header("user-agent") == "lower"

    def test_get_header_default(self):
        request = HTTPRequest(request_line="GET / HTTP/1.1")

        assert request.get_header("Accept-Encoding") == ""
        assert request.get_header("Accept-Encoding", None) is None

    def test_immutable(self):
        request = HTTPRequest(request_line="GET / HTTP/1.1")

        with pytest.raises(Exception):
            request.request_line = "POST / HTTP/1.1"
