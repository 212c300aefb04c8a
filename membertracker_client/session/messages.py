# membertracker_client/session/messages.py
from typing import Any, Dict, Optional

from ..security.errors import ValidationFailure
from ..transport.errors import ApiError, AuthRenewalFailure, HttpFailure, NetworkFailure

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."
NETWORK_ERROR_MESSAGE = "Unable to reach the server. Please check your connection."
DEFAULT_ERROR_MESSAGE = "An unexpected error occurred."

STATUS_MESSAGES: Dict[int, str] = {
    400: "Invalid request. Please check your input.",
    401: INVALID_CREDENTIALS_MESSAGE,
    403: "Access denied. You do not have permission to perform this action.",
    409: "User already exists with this email.",
    422: "Validation failed. Please check your input.",
    429: "Too many login attempts. Please try again later.",
    500: "Server error. Please try again later.",
}


def _body_field(body: Any, key: str) -> Optional[str]:
    if isinstance(body, dict) and isinstance(body.get(key), str) and body.get(key):
        return body[key]
    return None


def describe_failure(error: BaseException, context: str = "default") -> str:
    """
    Map a failure to the message shown to the user.

    Backend-provided `error` text wins, except for login where 400 and 401
    always yield the generic credentials message so the user cannot tell
    whether the email or the password was wrong.
    """
    if isinstance(error, ValidationFailure):
        return error.message
    if isinstance(error, AuthRenewalFailure):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(error, NetworkFailure):
        return NETWORK_ERROR_MESSAGE
    if isinstance(error, HttpFailure):
        status = error.status
        if context == "login" and status in (400, 401):
            return INVALID_CREDENTIALS_MESSAGE
        backend_error = _body_field(error.body, "error")
        if backend_error:
            return backend_error
        if status in (400, 422):
            return _body_field(error.body, "message") or STATUS_MESSAGES[status]
        if status in STATUS_MESSAGES:
            return STATUS_MESSAGES[status]
        return error.message or DEFAULT_ERROR_MESSAGE
    if isinstance(error, ApiError):
        return error.message or DEFAULT_ERROR_MESSAGE
    return str(error) or DEFAULT_ERROR_MESSAGE
