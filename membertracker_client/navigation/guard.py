# membertracker_client/navigation/guard.py
import logging
from typing import Dict, Optional
from urllib.parse import parse_qsl, urlsplit

from ..security.events import SecurityEventLog, security_events
from ..session.session_manager import SessionManager
from ..settings import Settings, settings as default_settings
from .models import NavigationDecision, RouteLocation

logger = logging.getLogger(__name__)


def is_safe_redirect(target: Optional[str]) -> bool:
    """Only in-app absolute paths are followed; '//host' would leave the app."""
    return bool(target) and target.startswith("/") and not target.startswith("//")


def location_from_path(path: str, query: Optional[Dict[str, str]] = None) -> RouteLocation:
    parts = urlsplit(path)
    merged = dict(parse_qsl(parts.query))
    merged.update(query or {})
    return RouteLocation(path=parts.path or "/", query=merged)


class NavigationGuard:
    """
    Decides whether a route transition may proceed.

    Rules are applied in order and the first match wins:
      1. wait for the one-time auth check
      2. an idle-expired session is logged out and sent to login (session=expired)
      3. auth-only routes send anonymous users to login (redirect=<requested path>)
      4. guest-only routes send authenticated users to the pending redirect or the default route
      5. role-restricted routes send other roles to the default route (error=access-denied)
      6. otherwise the transition is allowed
    """

    def __init__(
        self,
        session_manager: SessionManager,
        settings: Optional[Settings] = None,
        security_log: Optional[SecurityEventLog] = None
    ):
        self._session_manager = session_manager
        self.settings = settings or default_settings
        self.security_log = security_log or security_events

    async def evaluate(self, location: RouteLocation) -> NavigationDecision:
        session = self._session_manager
        meta = location.meta

        if not session.auth_checked:
            await session.check_auth()

        if session.is_authenticated and session.is_expired:
            logger.warning(f"GUARD: Session idle-expired while navigating to {location.full_path}")
            await session.force_logout("idle-timeout", redirect=False)
            return NavigationDecision.redirect_to(
                location_from_path(self.settings.login_route, {"session": "expired"}),
                reason="session-expired",
            )

        if meta.requires_auth and not session.is_authenticated:
            logger.info(f"GUARD: {location.full_path} requires authentication; redirecting to login")
            return NavigationDecision.redirect_to(
                location_from_path(self.settings.login_route, {"redirect": location.full_path}),
                reason="authentication-required",
            )

        if meta.requires_guest and session.is_authenticated:
            pending = location.query.get("redirect")
            target = pending if is_safe_redirect(pending) else self.settings.default_route
            logger.info(f"GUARD: {location.path} is guest-only; redirecting to {target}")
            return NavigationDecision.redirect_to(location_from_path(target), reason="guest-only")

        allowed_roles = meta.allowed_roles
        if allowed_roles and session.user_role not in allowed_roles:
            self.security_log.log_event(
                "access-denied",
                {"path": location.path, "role": session.user_role, "required": allowed_roles},
                severity="medium",
            )
            return NavigationDecision.redirect_to(
                location_from_path(self.settings.default_route, {"error": "access-denied"}),
                reason="access-denied",
            )

        return NavigationDecision.allow()
