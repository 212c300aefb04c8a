# membertracker_client/transport/errors.py
from typing import Any, Optional


class ApiError(Exception):
    """Base exception class for failures surfaced by the API transport.

    Every failure the transport hands back to a caller is an ApiError, so
    consuming code can catch a single type and map it to a user-facing message.
    """

    def __init__(self, message: str = "API request failed."):
        self.message = message
        super().__init__(message)


class NetworkFailure(ApiError):
    """Raised when a call produced no response at all.

    Covers connection errors and request timeouts. Only surfaced once the
    transient retry budget of the call is exhausted.
    """

    def __init__(
        self,
        method: str,
        url: str,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None
    ):
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(message or f"Network failure on {method.upper()} {url}: {cause}")


class HttpFailure(ApiError):
    """Raised for a non-2xx response that was not absorbed by retry or renewal.

    The decoded response body is kept so callers can extract backend-provided
    error details.
    """

    def __init__(self, status: int, body: Any = None, method: str = "", url: str = ""):
        self.status = status
        self.body = body
        self.method = method
        self.url = url
        super().__init__(f"HTTP {status} on {method.upper()} {url}".strip())


class AuthRenewalFailure(ApiError):
    """Raised when renewing an expired session failed.

    Callers whose request hit a 401 receive this error instead of the original
    401 once the renewal gives up. `cause` is the failure of the renewal call.
    """

    def __init__(self, cause: Optional[ApiError] = None, message: str = "Session renewal failed."):
        self.cause = cause
        super().__init__(message)

    @property
    def status(self) -> Optional[int]:
        return getattr(self.cause, "status", None)
