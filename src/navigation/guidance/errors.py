# errors.py
# Failure taxonomy for route fetching and session control.

from enum import Enum
from typing import Optional


# Provider info codes, as documented for the AMap web service API.
INFO_CODES = {
    "10000": "Request OK",
    "10001": "Invalid or expired key",
    "10002": "No permission for this service, or misspelt endpoint path",
    "10003": "Daily quota exceeded",
    "10004": "Too many requests per unit of time",
    "10005": "Caller IP is not on the key's whitelist",
    "20000": "Invalid request parameter",
    "20001": "Missing required parameter",
    "20002": "Invalid request protocol",
    "20003": "Other unknown error",
    "30000": "Service response error",
    "30001": "Engine returned malformed data",
    "30002": "Upstream connection timed out",
    "30003": "Timed out reading upstream response",
}

HTTP_STATUS_HINTS = {
    400: "Bad request: check the origin/destination format",
    401: "Unauthorised: check the API key",
    403: "Forbidden: quota exhausted or service not enabled",
    404: "Endpoint not found: check the base URL",
    429: "Rate limited: slow down requests",
    500: "Provider internal error",
    502: "Bad gateway",
    503: "Service temporarily unavailable",
}


class RouteError(Exception):
    """Base class for everything that can go wrong while fetching a route."""

    kind = "route_error"


class TransportFailure(Enum):
    TIMEOUT            = "timeout"
    DNS_FAILURE        = "dns_failure"
    CONNECTION_REFUSED = "connection_refused"
    IO_ERROR           = "io_error"


class TransportError(RouteError):
    """The request never produced an HTTP response."""

    kind = "transport"

    def __init__(self, failure: TransportFailure, detail: str = "") -> None:
        self.failure = failure
        self.detail = detail
        super().__init__(f"{failure.value}: {detail}" if detail else failure.value)


class HttpStatusError(RouteError):
    """Non-2xx HTTP response."""

    kind = "http_status"

    def __init__(self, code: int, body: Optional[str] = None) -> None:
        self.code = code
        self.body = body
        super().__init__(f"HTTP {code}: {self.hint}")

    @property
    def hint(self) -> str:
        return HTTP_STATUS_HINTS.get(self.code, "Unexpected HTTP status")


class ApiError(RouteError):
    """The provider answered with status != "1"."""

    kind = "api"

    def __init__(self, code: Optional[str], message: Optional[str]) -> None:
        self.code = code
        self.message = message
        super().__init__(f"API error {code}: {message}")

    @property
    def description(self) -> str:
        return INFO_CODES.get(self.code or "", f"Unknown info code: {self.code}")


class ParseError(RouteError):
    """Response body is not the JSON shape we expect."""

    kind = "parse"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class NoRouteFound(RouteError):
    """Well-formed success response without a single usable coordinate."""

    kind = "no_route"


class InvalidStateError(Exception):
    """An operation was requested in a session state that forbids it."""
