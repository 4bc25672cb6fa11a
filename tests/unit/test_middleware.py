"""
Unit tests for the middleware pipeline, compression and access logging.
"""

import gzip
import json
import logging

import pytest

from minihttpd.http.request import HTTPRequest
from minihttpd.http.response import HTTPResponse, HTTPStatus, created, internal_error, ok_text
from minihttpd.middleware import (
    CompressionMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewarePipeline,
    RequestLog,
)


def make_request(request_line: str = "GET /echo/abc HTTP/1.1", **headers) -> HTTPRequest:
    return HTTPRequest(request_line=request_line, headers=headers, client_address=("10.0.0.1", 5000))


class RecordingMiddleware(Middleware):
    """Appends its tag to a shared list on the way in and out."""

    def __init__(self, tag, calls):
        self.tag = tag
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.tag}:in")
        response = next(request)
        self.calls.append(f"{self.tag}:out")
        return response


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_empty_pipeline_calls_handler(self):
        handler = MiddlewarePipeline().wrap(lambda request: ok_text("x"))
        assert handler(make_request()).body == b"x"

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = (MiddlewarePipeline()
            .add(RecordingMiddleware("a", calls))
            .add(RecordingMiddleware("b", calls)))

        def handler(request):
            calls.append("handler")
            return ok_text("x")

        pipeline.wrap(handler)(make_request())

        assert calls == ["a:in", "b:in", "handler", "b:out", "a:out"]

    def test_len_and_iter(self):
        pipeline = MiddlewarePipeline().add(LoggingMiddleware())

        assert len(pipeline) == 1
        assert [mw.name for mw in pipeline] == ["LoggingMiddleware"]


class TestCompressionMiddleware:
    """Tests for CompressionMiddleware."""

    def test_gzip_when_accepted(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request(**{"Accept-Encoding": "gzip"}), lambda r: ok_text("abc"))

        assert response.headers["Content-Encoding"] == "gzip"
        assert gzip.decompress(response.body) == b"abc"

        wire = dict(response.wire_headers())
        assert wire["Content-Length"] == str(len(response.body))

    def test_header_order_on_the_wire(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request(**{"Accept-Encoding": "gzip"}), lambda r: ok_text("abc"))

        names = [name for name, _ in response.wire_headers()]
        assert names == ["Content-Type", "Content-Encoding", "Content-Length"]

    def test_unsupported_encoding_falls_back(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request(**{"Accept-Encoding": "bogus"}), lambda r: ok_text("abc"))

        assert "Content-Encoding" not in response.headers
        assert response.body == b"abc"
        assert dict(response.wire_headers())["Content-Length"] == "3"

    def test_no_header(self):
        original = ok_text("abc")
        response = CompressionMiddleware()(make_request(), lambda r: original)

        assert response is original

    def test_lowercase_header_name_ignored(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request(**{"accept-encoding": "gzip"}), lambda r: ok_text("abc"))

        assert response.body == b"abc"

    def test_empty_responses_untouched(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request(**{"Accept-Encoding": "gzip"}), lambda r: created())

        assert response.to_bytes() == b"HTTP/1.1 201 Created\r\n\r\n"

    def test_already_encoded_untouched(self):
        encoded = HTTPResponse(headers={"Content-Type": "text/plain", "Content-Encoding": "br"}, body=b"xx")
        response = CompressionMiddleware()(make_request(**{"Accept-Encoding": "gzip"}), lambda r: encoded)

        assert response is encoded

    def test_does_not_mutate_handler_response(self):
        original = ok_text("abc")
        CompressionMiddleware()(make_request(**{"Accept-Encoding": "gzip"}), lambda r: original)

        assert original.body == b"abc"
        assert "Content-Encoding" not in original.headers

    def test_empty_allow_set_disables(self):
        middleware = CompressionMiddleware(encodings=())
        response = middleware(make_request(**{"Accept-Encoding": "gzip"}), lambda r: ok_text("abc"))

        assert response.body == b"abc"

    def test_unknown_encoding_rejected(self):
        with pytest.raises(ValueError):
            CompressionMiddleware(encodings=("zstd",))


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware and RequestLog."""

    def test_text_log_line(self, caplog):
        middleware = LoggingMiddleware()

        with caplog.at_level(logging.INFO, logger="minihttpd.access"):
            response = middleware(make_request(), lambda r: ok_text("abc"))

        assert response.status == HTTPStatus.OK
        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert message.startswith("10.0.0.1 - - [")
        assert '"GET /echo/abc HTTP/1.1" 200 3 ' in message

    def test_json_log_line(self, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="minihttpd.access"):
            middleware(make_request(**{"User-Agent": "curl"}), lambda r: ok_text("abc"))

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["method"] == "GET"
        assert entry["path"] == "/echo/abc"
        assert entry["version"] == "HTTP/1.1"
        assert entry["status_code"] == 200
        assert entry["user_agent"] == "curl"
        assert entry["content_encoding"] == ""

    def test_server_error_logged_as_warning(self, caplog):
        middleware = LoggingMiddleware(log_level=logging.DEBUG)

        with caplog.at_level(logging.DEBUG, logger="minihttpd.access"):
            middleware(make_request(), lambda r: ok_text("abc"))
            middleware(make_request(), lambda r: internal_error())

        assert [record.levelno for record in caplog.records] == [logging.DEBUG, logging.WARNING]
        assert '"GET /echo/abc HTTP/1.1" 500 0 ' in caplog.records[1].getMessage()

    def test_handler_exception_logged_and_reraised(self, caplog):
        def failing(request):
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger="minihttpd.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(make_request(), failing)

        assert caplog.records[0].levelno == logging.ERROR
        assert "boom" in caplog.records[0].getMessage()

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")

    def test_request_log_dict_rounds_duration(self):
        entry = RequestLog(
            request_id="abcd1234",
            method="GET",
            path="/",
            version="",
            client_ip="-",
            user_agent="-",
            status_code=200,
            content_length=0,
            content_encoding="",
            duration_ms=1.23456,
            timestamp="19/Oct/2026:10:00:00 +0000",
        )

        assert entry.to_dict()["duration_ms"] == 1.23
        assert entry.to_text() == '- - - [19/Oct/2026:10:00:00 +0000] "GET /" 200 0 1.23ms'
