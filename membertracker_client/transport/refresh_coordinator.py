# membertracker_client/transport/refresh_coordinator.py
import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Optional, Tuple

from ..settings import Settings, settings as default_settings
from .errors import ApiError, AuthRenewalFailure
from .models import RequestAttempt

if TYPE_CHECKING:
    from ..session.models import Identity
    from ..session.session_manager import SessionManager

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Resolves 401 responses by renewing the session, then lets the caller replay.

    Per failed call: Failed(401) -> Refreshing -> Replayed | GivenUp.

    Renewal is single-flight. While one renewal is running, every other call
    that hits a 401 awaits the same task and shares its outcome, so the
    session is renewed, or given up on, exactly once per wave of failures.
    """

    def __init__(self, session_manager: "SessionManager", settings: Optional[Settings] = None):
        self._session_manager = session_manager
        self.settings = settings or default_settings
        self._inflight: Optional[asyncio.Task] = None
        self.renewal_count = 0

    @property
    def exempt_paths(self) -> Tuple[str, ...]:
        return (
            self.settings.auth_login_path,
            self.settings.auth_refresh_path,
            self.settings.auth_logout_path,
        )

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def is_exempt(self, url: str) -> bool:
        """Auth endpoints never trigger renewal, which would loop forever."""
        path = url.split("?", 1)[0].rstrip("/")
        return any(path.endswith(exempt.rstrip("/")) for exempt in self.exempt_paths)

    def should_handle(self, attempt: RequestAttempt) -> bool:
        return not attempt.is_auth_retry_attempted and not self.is_exempt(attempt.url)

    async def renew_for(self, attempt: RequestAttempt) -> None:
        """
        Renew the session on behalf of `attempt`, which received a 401.

        Marks the attempt so a second 401 on its replay is surfaced instead of
        renewed again. Returns normally when the caller should resend.

        Raises:
            AuthRenewalFailure: renewal failed; the session has been cleared.
        """
        attempt.is_auth_retry_attempted = True
        logger.info(f"REFRESH: 401 on {attempt.method} {attempt.url}; renewing session before replay")
        await self.refresh()
        logger.info(f"REFRESH: Session renewed; replaying {attempt.method} {attempt.url}")

    async def refresh(self) -> Optional["Identity"]:
        """
        Renew the session, joining an in-flight renewal when there is one.

        Returns:
            The identity carried by the renewal response, if any.

        Raises:
            AuthRenewalFailure: renewal failed; the session has been cleared.
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._run_renewal())
        else:
            logger.debug("REFRESH: Renewal already in flight; awaiting its outcome")
        # Shield so a cancelled waiter does not cancel the shared renewal
        return await asyncio.shield(self._inflight)

    async def _run_renewal(self) -> Optional["Identity"]:
        self.renewal_count += 1
        was_authenticated = self._session_manager.is_authenticated
        try:
            return await self._session_manager.renew()
        except ApiError as e:
            logger.warning(f"REFRESH: Session renewal failed: {e.message}. Giving up.")
            if was_authenticated:
                await self._session_manager.force_logout("renewal-failed")
            else:
                await self._session_manager.clear_session()
            raise AuthRenewalFailure(cause=e) from e

    async def aclose(self) -> None:
        """Cancel an in-flight renewal and wait for it to unwind."""
        task, self._inflight = self._inflight, None
        if task is None:
            return
        if not task.done():
            logger.info("REFRESH: Cancelling in-flight renewal on shutdown")
            task.cancel()
        # Awaiting also retrieves a stored failure nobody collected
        with contextlib.suppress(asyncio.CancelledError, ApiError):
            await task
