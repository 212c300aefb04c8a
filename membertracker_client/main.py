# membertracker_client/main.py
import logging
from typing import Awaitable, Callable, Optional

import httpx

from .settings import Settings, settings as default_settings
from .security.events import SecurityEventLog
from .transport import ApiTransport, RefreshCoordinator, RetryPolicy
from .session import ActivitySource, SessionManager
from .session.session_manager import Clock
from .navigation import NavigationGuard, Router

# Configure logging based on debug mode setting
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level="DEBUG" if default_settings.debug_mode else "INFO",
        format='%(asctime)s - %(name)s [%(levelname)s] - %(message)s'
    )

logger = logging.getLogger(__name__)


class MemberTrackerClient:
    """
    Wires the request pipeline, session state, monitor and router together.

    One instance corresponds to one running client application. Use it as an
    async context manager, or call `start()` and `aclose()` explicitly.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        activity_source: Optional[ActivitySource] = None,
        clock: Optional[Clock] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        self.settings = settings or default_settings
        self.security_log = SecurityEventLog()
        self.activity = activity_source or ActivitySource()

        self.transport = ApiTransport(
            settings=self.settings,
            http_client=http_client,
            retry_policy=RetryPolicy(settings=self.settings, sleep=sleep),
            security_log=self.security_log,
        )
        self.session = SessionManager(
            self.transport,
            settings=self.settings,
            activity_source=self.activity,
            clock=clock,
        )
        self.refresh_coordinator = RefreshCoordinator(self.session, settings=self.settings)
        self.transport.refresh_coordinator = self.refresh_coordinator
        self.transport.activity_hook = self.session.touch

        self.guard = NavigationGuard(self.session, settings=self.settings, security_log=self.security_log)
        self.router = Router(self.guard)
        self.session.navigator = self.router
        logger.info(f"MemberTrackerClient created for {self.settings.api_base_url}")

    async def start(self) -> None:
        """Application start: resolve whether a backend session already exists."""
        identity = await self.session.check_auth()
        logger.info(f"MemberTrackerClient started (authenticated: {identity is not None})")

    async def aclose(self) -> None:
        """Wind down background tasks before closing the HTTP client they use."""
        await self.refresh_coordinator.aclose()
        await self.session.aclose()
        await self.transport.aclose()
        logger.info("MemberTrackerClient closed")

    async def __aenter__(self) -> "MemberTrackerClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
