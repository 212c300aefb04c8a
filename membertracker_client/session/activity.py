# membertracker_client/session/activity.py
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

# User-interaction signals that count as session activity
ACTIVITY_EVENTS = ("pointerdown", "pointermove", "keypress", "scroll", "touchstart")

ActivityListener = Callable[[], None]


class ActivitySource:
    """
    In-process hub for user-interaction signals.

    The UI layer calls `emit()` for each interaction; the session monitor
    subscribes while a session is active. Listeners are passive: a failing
    listener is logged and never propagates into the emitter.
    """

    def __init__(self):
        self._listeners: Dict[str, List[ActivityListener]] = {}

    def add_listener(self, event: str, listener: ActivityListener) -> None:
        listeners = self._listeners.setdefault(event, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_listener(self, event: str, listener: ActivityListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener()
            except Exception as e:
                logger.warning(f"ACTIVITY: Listener for '{event}' failed: {e}", exc_info=True)
