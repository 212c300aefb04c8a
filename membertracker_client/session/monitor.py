# membertracker_client/session/monitor.py
import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

from .activity import ACTIVITY_EVENTS, ActivitySource

logger = logging.getLogger(__name__)


class SessionMonitor:
    """
    Repeating idle-timeout check for an authenticated session.

    Owns one asyncio task ticking every `period_seconds` and the activity
    listeners on the ActivitySource. Both are attached by `start()` and
    detached by `stop()`; repeated calls to either are no-ops, so login and
    logout cycles never stack duplicate timers or handlers.
    """

    def __init__(
        self,
        is_expired: Callable[[], bool],
        on_idle_timeout: Callable[[], Awaitable[None]],
        on_activity: Callable[[], None],
        activity_source: Optional[ActivitySource] = None,
        period_seconds: float = 30.0
    ):
        self._is_expired = is_expired
        self._on_idle_timeout = on_idle_timeout
        self._on_activity = on_activity
        self.activity_source = activity_source
        self.period_seconds = period_seconds
        self._task: Optional[asyncio.Task] = None
        self._stopped_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start ticking and listening. Must be called from a running event loop."""
        if self._running:
            logger.debug("MONITOR: Already running; start ignored")
            return
        self._running = True
        if self.activity_source is not None:
            for event in ACTIVITY_EVENTS:
                self.activity_source.add_listener(event, self._on_activity)
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"MONITOR: Started (period {self.period_seconds}s)")

    def stop(self) -> None:
        """Stop ticking and detach listeners. Safe to call when not running."""
        if not self._running:
            return
        self._running = False
        if self.activity_source is not None:
            for event in ACTIVITY_EVENTS:
                self.activity_source.remove_listener(event, self._on_activity)
        task, self._task = self._task, None
        self._stopped_task = task
        # A tick that triggers logout stops the monitor from inside its own task;
        # that task exits on its own once the callback returns
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        logger.info("MONITOR: Stopped")

    async def aclose(self) -> None:
        """Stop, then wait for the tick task to finish unwinding."""
        self.stop()
        task, self._stopped_task = self._stopped_task, None
        if task is None or task is asyncio.current_task():
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def check_now(self) -> bool:
        """Run one idle check. Returns True if the idle timeout fired."""
        if not self._is_expired():
            return False
        logger.warning("MONITOR: Session expired due to inactivity")
        await self._on_idle_timeout()
        return True

    def _owns_current_task(self) -> bool:
        return self._task is not None and self._task is asyncio.current_task()

    async def _run(self) -> None:
        while self._owns_current_task():
            await asyncio.sleep(self.period_seconds)
            if not self._owns_current_task():
                break
            try:
                await self.check_now()
            except Exception as e:
                logger.error(f"MONITOR: Idle check failed: {e}", exc_info=True)
