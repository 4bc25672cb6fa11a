"""
=============================================================================
CONTENT NEGOTIATION
=============================================================================

Picks the response encoding from the client's Accept-Encoding header.

    ┌───────────────────────────────────────────────────────────────┐
    │ Accept-Encoding: deflate, gzip, br                            │
    │                  ───┬───  ──┬─  ─┬                            │
    │                     │       │    │                            │
    │                     ✗       ✓    ✗     supported = ("gzip",)  │
    │                                                                │
    │  → negotiate() returns "gzip"                                  │
    └───────────────────────────────────────────────────────────────┘

=============================================================================
RULES
=============================================================================

    1. Split the header value on ","
    2. Trim every token, drop empty ones
    3. The FIRST token (in the client's order) that is in the supported
       set wins
    4. No supported token, or no header at all → None (send as-is)

Quality values ("gzip;q=0.5") are not interpreted. A token with
parameters is compared as a whole, so "gzip;q=0.5" does not match "gzip".

At most one encoding is ever applied.

=============================================================================
"""

import functools
import gzip
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple


ACCEPT_ENCODING = "Accept-Encoding"

DEFAULT_ENCODINGS: Tuple[str, ...] = ("gzip",)

# Encoding token → function that encodes a body.
# gzip gets a fixed header timestamp so equal bodies encode to equal bytes.
ENCODERS: Dict[str, Callable[[bytes], bytes]] = {
    "gzip": functools.partial(gzip.compress, mtime=0),
}


@dataclass(frozen=True)
class EncodingPreference:
    """
    The client's encodings, in the order it listed them.

    Example:
        parse_encoding_preference(" gzip , br").tokens  # ("gzip", "br")
    """

    tokens: Tuple[str, ...] = ()

    def first_supported(self, supported: Iterable[str]) -> Optional[str]:
        """Get the first token that appears in supported, or None."""
        allowed = frozenset(supported)
        for token in self.tokens:
            if token in allowed:
                return token
        return None

    def __bool__(self) -> bool:
        return bool(self.tokens)


def parse_encoding_preference(value: Optional[str]) -> EncodingPreference:
    """
    Parse a comma-separated Accept-Encoding value.

    None or "" gives an empty preference.
    """
    if not value:
        return EncodingPreference()

    tokens = tuple(token.strip() for token in value.split(","))
    return EncodingPreference(tokens=tuple(token for token in tokens if token))


def negotiate(value: Optional[str], supported: Iterable[str] = DEFAULT_ENCODINGS) -> Optional[str]:
    """
    Select the encoding to apply for an Accept-Encoding value.

    Args:
        value: Raw header value, or None if the client sent none.
        supported: Encodings the server is willing to apply.

    Returns:
        The chosen encoding token, or None to send the body unencoded.
    """
    return parse_encoding_preference(value).first_supported(supported)


def encode_body(body: bytes, encoding: str) -> bytes:
    """
    Encode a body with a known encoding.

    Raises:
        KeyError: If no encoder is registered for encoding.
    """
    return ENCODERS[encoding](body)
