# membertracker_client/security/events.py
import logging
import re
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .errors import ValidationFailure

logger = logging.getLogger(__name__)

Severity = Literal["low", "medium", "high"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_LOG_LEVEL_BY_SEVERITY = {
    "low": logging.DEBUG,
    "medium": logging.WARNING,
    "high": logging.ERROR,
}


class SecurityEvent(BaseModel):
    """A security-relevant occurrence. Recorded and logged, never raised."""

    kind: str
    data: Dict[str, Any] = Field(default_factory=dict)
    severity: Severity = "medium"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SecurityEventLog:
    """Bounded in-memory history of security events."""

    MAX_EVENTS: int = 100

    def __init__(self, max_events: Optional[int] = None):
        self._events: Deque[SecurityEvent] = deque(maxlen=max_events or self.MAX_EVENTS)

    def log_event(self, kind: str, data: Optional[Dict[str, Any]] = None, severity: Severity = "medium") -> SecurityEvent:
        event = SecurityEvent(kind=kind, data=data or {}, severity=severity)
        self._events.append(event)
        level = _LOG_LEVEL_BY_SEVERITY.get(severity, logging.WARNING)
        logger.log(level, f"SECURITY: {kind} ({severity}) {event.data}")
        return event

    @property
    def events(self) -> List[SecurityEvent]:
        return list(self._events)

    def report(self) -> Dict[str, Any]:
        """Summary of recorded events with counts per severity."""
        by_severity: Dict[str, int] = {}
        for event in self._events:
            by_severity[event.severity] = by_severity.get(event.severity, 0) + 1
        return {
            "total": len(self._events),
            "by_severity": by_severity,
            "recent": [e.model_dump() for e in list(self._events)[-10:]],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def clear(self) -> None:
        self._events.clear()

    def validate_file_name(self, file_name: str) -> str:
        """
        Reject file names that could traverse directories.

        Raises:
            ValidationFailure: if the name contains '..', '/' or a backslash.
        """
        if ".." in file_name or "/" in file_name or "\\" in file_name:
            self.log_event("suspicious-file-name", {"file_name": file_name}, severity="high")
            raise ValidationFailure("file_name", "Invalid file name")
        return file_name


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


# Shared log used when no explicit instance is injected
security_events = SecurityEventLog()
