# tests/test_security_events.py
import logging

import pytest

from membertracker_client.security import SecurityEventLog, ValidationFailure, is_valid_email


def test_events_are_recorded_and_summarized():
    log = SecurityEventLog()
    log.log_event("forbidden-access", {"url": "/v1/users"}, severity="medium")
    log.log_event("session-expired", severity="low")
    log.log_event("suspicious-file-name", {"file_name": "../etc"}, severity="high")

    report = log.report()

    assert report["total"] == 3
    assert report["by_severity"] == {"medium": 1, "low": 1, "high": 1}
    assert [event["kind"] for event in report["recent"]] == [
        "forbidden-access",
        "session-expired",
        "suspicious-file-name",
    ]


def test_history_is_bounded():
    log = SecurityEventLog(max_events=5)
    for i in range(8):
        log.log_event("forbidden-access", {"n": i})

    assert [event.data["n"] for event in log.events] == [3, 4, 5, 6, 7]

    log.clear()
    assert log.events == []


def test_severity_controls_log_level(caplog):
    log = SecurityEventLog()
    with caplog.at_level(logging.DEBUG, logger="membertracker_client.security.events"):
        log.log_event("session-expired", severity="low")
        log.log_event("suspicious-file-name", severity="high")

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.DEBUG, logging.ERROR]


@pytest.mark.parametrize("name", ["../secret.txt", "a/b.csv", "a\\b.csv"])
def test_suspicious_file_names_are_rejected_and_recorded(name):
    log = SecurityEventLog()

    with pytest.raises(ValidationFailure) as exc_info:
        log.validate_file_name(name)

    assert exc_info.value.field == "file_name"
    assert log.events[-1].kind == "suspicious-file-name"
    assert log.events[-1].severity == "high"


def test_plain_file_name_passes():
    log = SecurityEventLog()
    assert log.validate_file_name("members-2026.csv") == "members-2026.csv"
    assert log.events == []


@pytest.mark.parametrize(
    "email,valid",
    [
        ("ada@example.com", True),
        ("a@b.co", True),
        ("no-at-sign.com", False),
        ("two@@example.com", False),
        ("spaces in@example.com", False),
        ("", False),
        (None, False),
    ],
)
def test_email_syntax(email, valid):
    assert is_valid_email(email) is valid
