# membertracker_client/session/models.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime, timedelta
from enum import Enum


class SessionStatus(str, Enum):
    """Authentication status of the client session."""
    UNCHECKED = "unchecked"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class Identity(BaseModel):
    """The authenticated user as reported by the backend."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[Any] = None
    email: Optional[str] = None
    role: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.email or str(self.id or "")


class Credentials(BaseModel):
    """Login form input. Kept as submitted; syntax is checked by the session manager."""
    email: Optional[Any] = None
    password: Optional[Any] = None


class Session(BaseModel):
    """
    The client-held record of authentication status and activity recency.

    Invariant: identity is set if and only if status is AUTHENTICATED. Only
    the SessionManager mutates this record.
    """

    model_config = ConfigDict(validate_assignment=True)

    status: SessionStatus = SessionStatus.UNCHECKED
    identity: Optional[Identity] = None
    last_activity_at: Optional[datetime] = None
    idle_timeout_ms: int = Field(default=60 * 60 * 1000, gt=0)

    def is_expired(self, now: datetime) -> bool:
        if self.status != SessionStatus.AUTHENTICATED or self.last_activity_at is None:
            return False
        return now - self.last_activity_at > timedelta(milliseconds=self.idle_timeout_ms)

    def time_until_expiry_ms(self, now: datetime) -> int:
        if self.status != SessionStatus.AUTHENTICATED or self.last_activity_at is None:
            return 0
        elapsed_ms = (now - self.last_activity_at).total_seconds() * 1000
        return max(0, int(self.idle_timeout_ms - elapsed_ms))

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "identity": self.identity.email if self.identity else None,
            "last_activity_at": self.last_activity_at.isoformat() if self.last_activity_at else None,
        }
