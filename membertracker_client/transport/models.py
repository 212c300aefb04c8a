# membertracker_client/transport/models.py
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RequestAttempt(BaseModel):
    """
    One logical outbound call.

    The same object is resent on every retry, so its counters survive resends
    and are only fresh when a new logical call creates a new attempt.
    """

    method: str
    url: str
    params: Dict[str, Any] = Field(default_factory=dict)
    json_body: Optional[Any] = None
    headers: Dict[str, str] = Field(default_factory=dict)

    # Authorization renewal is attempted at most once per call
    is_auth_retry_attempted: bool = False
    # Transient resends performed so far, bounded by the retry policy
    retry_count: int = 0

    def model_post_init(self, __context: Any) -> None:
        self.method = self.method.upper()

    @property
    def is_mutating(self) -> bool:
        return self.method in MUTATING_METHODS

    @property
    def is_read(self) -> bool:
        return self.method == "GET"
