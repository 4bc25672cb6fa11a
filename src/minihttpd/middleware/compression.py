"""
=============================================================================
COMPRESSION MIDDLEWARE
=============================================================================

Applies the encoding the client asked for (gzip) to response bodies.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

    Request:
    ┌───────────────────────────────────────────────────────────────┐
    │ GET /echo/abc HTTP/1.1                                        │
    │ Accept-Encoding: invalid-encoding, gzip                       │
    └───────────────────────────────────────────────────────────────┘

    Response:
    ┌───────────────────────────────────────────────────────────────┐
    │ HTTP/1.1 200 OK                                               │
    │ Content-Type: text/plain                                      │
    │ Content-Encoding: gzip                                        │
    │ Content-Length: 23      (compressed size)                     │
    │                                                               │
    │ [gzip compressed body]                                        │
    └───────────────────────────────────────────────────────────────┘

The header is parsed by http.encoding.negotiate(). If nothing the client
lists is supported (or the header is missing) the response is passed
through untouched: same Content-Type, plain body, Content-Length of the
plain body.

=============================================================================
WHAT GETS COMPRESSED
=============================================================================

    ✓ Every response that has a Content-Type (echo, user-agent, files)
    ✗ Responses with no body headers (root path, 201, errors)
    ✗ Responses that already carry a Content-Encoding

Unlike a general-purpose server we compress even when gzip makes the body
bigger (a 3 byte echo becomes ~23 bytes). The client explicitly asked for
gzip, and a predictable Content-Encoding is easier to test against.

=============================================================================
"""

import logging
from dataclasses import replace
from typing import Iterable, Tuple

from .base import Middleware, NextHandler
from ..http.encoding import ACCEPT_ENCODING, DEFAULT_ENCODINGS, ENCODERS, encode_body, negotiate
from ..http.request import HTTPRequest
from ..http.response import CONTENT_ENCODING, CONTENT_LENGTH, CONTENT_TYPE, HTTPResponse


logger = logging.getLogger(__name__)


class CompressionMiddleware(Middleware):
    """
    Response compression middleware.

    =========================================================================
    HOW IT WORKS
    =========================================================================

    1. Negotiate an encoding from the Accept-Encoding header
    2. Call the next handler to get the response
    3. If an encoding was chosen and the response has a body type,
       encode the body and add Content-Encoding
    4. Content-Length is recomputed from the encoded body

    =========================================================================
    """

    def __init__(self, encodings: Iterable[str] = DEFAULT_ENCODINGS):
        """
        Args:
            encodings: Encodings the server may apply. Each must have an
                       encoder in http.encoding.ENCODERS.
        """
        self.encodings: Tuple[str, ...] = tuple(encodings)

        unknown = [enc for enc in self.encodings if enc not in ENCODERS]
        if unknown:
            raise ValueError(f"No encoder for: {', '.join(unknown)}")

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        encoding = negotiate(request.get_header(ACCEPT_ENCODING, None), self.encodings)

        response = next(request)

        if encoding is None or not self._should_encode(response):
            return response

        body = encode_body(response.body, encoding)
        logger.debug(f"{encoding}: {len(response.body)} → {len(body)} bytes")

        headers = {
            name: value
            for name, value in response.headers.items()
            if name != CONTENT_LENGTH
        }
        headers[CONTENT_ENCODING] = encoding

        return replace(response, headers=headers, body=body)

    def _should_encode(self, response: HTTPResponse) -> bool:
        if CONTENT_ENCODING in response.headers:
            return False
        return CONTENT_TYPE in response.headers


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. negotiate() picks at most one encoding from Accept-Encoding
# 2. Bodied responses get encoded and tagged with Content-Encoding
# 3. HTTPResponse.to_bytes() fills in Content-Length from the new body
# =============================================================================
