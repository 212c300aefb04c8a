# membertracker_client/navigation/models.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Union
from urllib.parse import urlencode


class RouteMeta(BaseModel):
    """Access requirements declared by a route."""
    requires_auth: bool = False
    requires_guest: bool = False
    requires_role: Optional[Union[str, List[str]]] = None

    @property
    def allowed_roles(self) -> List[str]:
        if self.requires_role is None:
            return []
        if isinstance(self.requires_role, str):
            return [self.requires_role]
        return list(self.requires_role)


class Route(BaseModel):
    path: str
    name: str
    meta: RouteMeta = Field(default_factory=RouteMeta)


class RouteLocation(BaseModel):
    """A concrete navigation target: a path, its query and the matched route."""
    path: str
    query: Dict[str, str] = Field(default_factory=dict)
    route: Optional[Route] = None

    @property
    def meta(self) -> RouteMeta:
        return self.route.meta if self.route else RouteMeta()

    @property
    def full_path(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"


class NavigationDecision(BaseModel):
    """Outcome of a guard evaluation. `redirect` is set iff `allowed` is False."""
    allowed: bool
    redirect: Optional[RouteLocation] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "NavigationDecision":
        return cls(allowed=True)

    @classmethod
    def redirect_to(cls, location: RouteLocation, reason: str) -> "NavigationDecision":
        return cls(allowed=False, redirect=location, reason=reason)


# Route table of the member tracker application
DEFAULT_ROUTES: List[Route] = [
    Route(path="/", name="dashboard", meta=RouteMeta(requires_auth=True)),
    Route(path="/members", name="members", meta=RouteMeta(requires_auth=True)),
    Route(path="/payments", name="payments", meta=RouteMeta(requires_auth=True)),
    Route(path="/communications", name="communications", meta=RouteMeta(requires_auth=True)),
    Route(path="/users", name="users", meta=RouteMeta(requires_auth=True, requires_role="ADMIN")),
    Route(path="/login", name="login", meta=RouteMeta(requires_guest=True)),
]
