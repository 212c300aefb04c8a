# membertracker_client/session/__init__.py
"""
Client session state for the Member Tracker backend.

This module provides the session record and its status machine, the idle
monitor and activity hub that keep it fresh, and the mapping from failures
to user-facing messages.
"""

from .models import SessionStatus, Identity, Credentials, Session
from .activity import ActivitySource, ACTIVITY_EVENTS
from .monitor import SessionMonitor
from .messages import describe_failure
from .session_manager import SessionManager, Navigator

__all__ = [
    # Models
    "SessionStatus",
    "Identity",
    "Credentials",
    "Session",

    # Activity tracking
    "ActivitySource",
    "ACTIVITY_EVENTS",
    "SessionMonitor",

    # State owner
    "SessionManager",
    "Navigator",

    # Messages
    "describe_failure",
]
