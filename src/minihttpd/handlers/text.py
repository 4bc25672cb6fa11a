"""
Plain-text endpoints.

    GET /echo/<text>   → <text>
    GET /user-agent    → value of the User-Agent header ("" if absent)
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok_text
from ..http.router import RouteMatch


def handle_echo(request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
    """Echo the path after "/echo/" back as text/plain."""
    return ok_text(match.remainder)


def handle_user_agent(request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
    """Return the client's User-Agent as text/plain."""
    return ok_text(request.user_agent)
