# membertracker_client/transport/__init__.py
"""
HTTP request pipeline for the Member Tracker backend.

This module provides the transport that sends API calls, the transient retry
policy, the coordinator that renews the session on authorization failures,
and the failure types surfaced to callers.
"""

from .errors import ApiError, NetworkFailure, HttpFailure, AuthRenewalFailure
from .models import RequestAttempt, MUTATING_METHODS
from .retry_policy import RetryPolicy
from .refresh_coordinator import RefreshCoordinator
from .client import ApiTransport, CACHE_BUSTER_PARAM

__all__ = [
    # Failures
    "ApiError",
    "NetworkFailure",
    "HttpFailure",
    "AuthRenewalFailure",

    # Call model
    "RequestAttempt",
    "MUTATING_METHODS",

    # Pipeline components
    "RetryPolicy",
    "RefreshCoordinator",
    "ApiTransport",
    "CACHE_BUSTER_PARAM",
]
