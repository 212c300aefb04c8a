# membertracker_client/security/__init__.py
"""
Security helpers for the client session layer.

Provides the input validation error type and the bounded security event log
used to record forbidden responses and suspicious input.
"""

from .errors import ValidationFailure
from .events import (
    SecurityEvent,
    SecurityEventLog,
    is_valid_email,
    security_events,
)

__all__ = [
    "ValidationFailure",
    "SecurityEvent",
    "SecurityEventLog",
    "is_valid_email",
    "security_events",
]
