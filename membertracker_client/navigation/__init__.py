# membertracker_client/navigation/__init__.py
"""
Route gating for the Member Tracker client.

This module provides the route table models, the navigation guard that
enforces authentication, guest-only and role requirements, and the
in-process router that applies the guard to every transition.
"""

from .errors import NavigationError, RouteNotFound, NavigationLoopError
from .models import RouteMeta, Route, RouteLocation, NavigationDecision, DEFAULT_ROUTES
from .guard import NavigationGuard, is_safe_redirect, location_from_path
from .router import Router

__all__ = [
    # Errors
    "NavigationError",
    "RouteNotFound",
    "NavigationLoopError",

    # Models
    "RouteMeta",
    "Route",
    "RouteLocation",
    "NavigationDecision",
    "DEFAULT_ROUTES",

    # Guard and router
    "NavigationGuard",
    "is_safe_redirect",
    "location_from_path",
    "Router",
]
