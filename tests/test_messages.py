# tests/test_messages.py
import httpx
import pytest

from membertracker_client.security import ValidationFailure
from membertracker_client.session import describe_failure
from membertracker_client.session.messages import (
    DEFAULT_ERROR_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    SESSION_EXPIRED_MESSAGE,
)
from membertracker_client.transport import AuthRenewalFailure, HttpFailure, NetworkFailure


@pytest.mark.parametrize("status", [400, 401])
def test_login_failures_never_reveal_the_wrong_field(status):
    failure = HttpFailure(status, body={"error": "No user with this email"})
    assert describe_failure(failure, context="login") == INVALID_CREDENTIALS_MESSAGE


def test_backend_error_text_wins_outside_login():
    failure = HttpFailure(409, body={"error": "Member number already taken"})
    assert describe_failure(failure) == "Member number already taken"


def test_validation_status_prefers_backend_message():
    failure = HttpFailure(422, body={"message": "lastName must not be blank"})
    assert describe_failure(failure) == "lastName must not be blank"


@pytest.mark.parametrize(
    "status,expected",
    [
        (400, "Invalid request. Please check your input."),
        (403, "Access denied. You do not have permission to perform this action."),
        (409, "User already exists with this email."),
        (429, "Too many login attempts. Please try again later."),
        (500, "Server error. Please try again later."),
    ],
)
def test_status_table(status, expected):
    assert describe_failure(HttpFailure(status)) == expected


def test_unknown_status_falls_back_to_failure_message():
    assert describe_failure(HttpFailure(418, method="GET", url="/teapot")) == "HTTP 418 on GET /teapot"


def test_other_failure_types():
    assert describe_failure(NetworkFailure("GET", "/v1/members", cause=httpx.ConnectError("down"))) == NETWORK_ERROR_MESSAGE
    assert describe_failure(AuthRenewalFailure(cause=HttpFailure(401))) == SESSION_EXPIRED_MESSAGE
    assert describe_failure(ValidationFailure("email", "Please enter a valid email address")) == (
        "Please enter a valid email address"
    )
    assert describe_failure(RuntimeError("")) == DEFAULT_ERROR_MESSAGE
