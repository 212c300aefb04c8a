# membertracker_client/navigation/router.py
import logging
from typing import Dict, Iterable, List, Optional, Union

from .errors import NavigationLoopError, RouteNotFound
from .guard import NavigationGuard, location_from_path
from .models import DEFAULT_ROUTES, NavigationDecision, Route, RouteLocation

logger = logging.getLogger(__name__)


class Router:
    """
    In-process navigation context: a route table plus the current location.

    Every transition is passed through the guard; redirects are followed
    until a location is allowed.
    """

    MAX_REDIRECTS = 10

    def __init__(self, guard: Optional[NavigationGuard] = None, routes: Optional[Iterable[Route]] = None):
        self.guard = guard
        self._routes: Dict[str, Route] = {route.path: route for route in (routes or DEFAULT_ROUTES)}
        self._current: Optional[RouteLocation] = None
        self.history: List[RouteLocation] = []

    @property
    def routes(self) -> List[Route]:
        return list(self._routes.values())

    @property
    def current(self) -> Optional[RouteLocation]:
        return self._current

    @property
    def current_path(self) -> Optional[str]:
        return self._current.path if self._current else None

    def resolve(self, target: Union[str, RouteLocation], query: Optional[Dict[str, str]] = None) -> RouteLocation:
        """
        Match a path (optionally carrying a query string) against the route table.

        Raises:
            RouteNotFound: if no route has this path.
        """
        if isinstance(target, RouteLocation):
            location = target.model_copy(update={"query": {**target.query, **(query or {})}})
        else:
            location = location_from_path(target, query)
        path = location.path.rstrip("/") or "/"
        route = self._routes.get(path)
        if route is None:
            raise RouteNotFound(path)
        return location.model_copy(update={"path": path, "route": route})

    async def navigate(self, target: Union[str, RouteLocation], query: Optional[Dict[str, str]] = None) -> RouteLocation:
        """
        Navigate to `target`, following guard redirects.

        Returns:
            The location actually reached, which becomes `current`.

        Raises:
            RouteNotFound: the target or a redirect matched no route.
            NavigationLoopError: redirects did not settle.
        """
        requested = self.resolve(target, query)
        location = requested
        for _ in range(self.MAX_REDIRECTS + 1):
            decision = await self.guard.evaluate(location) if self.guard else NavigationDecision.allow()
            if decision.allowed:
                self._current = location
                self.history.append(location)
                logger.info(f"ROUTER: Navigated to {location.full_path}")
                return location
            logger.info(f"ROUTER: {location.full_path} redirected to {decision.redirect.full_path} ({decision.reason})")
            location = self.resolve(decision.redirect)
        raise NavigationLoopError(requested.full_path, self.MAX_REDIRECTS)

    async def push(self, path: str, query: Optional[Dict[str, str]] = None) -> RouteLocation:
        return await self.navigate(path, query)
