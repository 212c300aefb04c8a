# membertracker_client/session/session_manager.py
import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

from ..security.errors import ValidationFailure
from ..security.events import is_valid_email
from ..settings import Settings, settings as default_settings
from ..transport.client import ApiTransport
from ..transport.errors import ApiError
from .activity import ActivitySource
from .messages import describe_failure
from .models import Credentials, Identity, Session, SessionStatus
from .monitor import SessionMonitor

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class Navigator(Protocol):
    """The navigation context the session redirects through after a forced logout."""

    @property
    def current_path(self) -> Optional[str]:
        ...

    async def push(self, path: str, query: Optional[Dict[str, str]] = None) -> Any:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """
    Owns the client Session and every transition of its status.

    All mutations of the session record run inside one asyncio.Lock. The lock
    is held only around state changes, never across network calls, because a
    call made by one operation may itself need a renewal that mutates state.
    """

    def __init__(
        self,
        transport: ApiTransport,
        settings: Optional[Settings] = None,
        activity_source: Optional[ActivitySource] = None,
        navigator: Optional[Navigator] = None,
        clock: Optional[Clock] = None
    ):
        self._transport = transport
        self.settings = settings or default_settings
        self.navigator = navigator
        self._clock: Clock = clock or _utc_now
        self._session = Session(idle_timeout_ms=self.settings.session_idle_timeout_ms)
        self._lock = asyncio.Lock()
        self._check_task: Optional[asyncio.Task] = None
        self._auth_checked = False

        self.last_error: Optional[str] = None
        self.is_loading = False

        self.monitor = SessionMonitor(
            is_expired=lambda: self.is_expired,
            on_idle_timeout=self._on_idle_timeout,
            on_activity=self.touch,
            activity_source=activity_source,
            period_seconds=self.settings.session_check_interval_seconds,
        )
        logger.info(
            f"SessionManager initialized. Idle timeout: {self.settings.session_idle_timeout_ms}ms, "
            f"check interval: {self.settings.session_check_interval_ms}ms"
        )

    # Read-only views

    @property
    def session(self) -> Session:
        """A snapshot copy; mutating it has no effect on the live session."""
        return self._session.model_copy(deep=True)

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity

    @property
    def is_authenticated(self) -> bool:
        return self._session.status == SessionStatus.AUTHENTICATED

    @property
    def is_expired(self) -> bool:
        return self._session.is_expired(self._clock())

    @property
    def time_until_expiry_ms(self) -> int:
        return self._session.time_until_expiry_ms(self._clock())

    @property
    def auth_checked(self) -> bool:
        return self._auth_checked

    @property
    def user_role(self) -> Optional[str]:
        return self._session.identity.role if self._session.identity else None

    @property
    def is_admin(self) -> bool:
        return self.user_role == "ADMIN"

    # Operations

    async def login(self, credentials: Union[Credentials, Mapping[str, Any]]) -> Identity:
        """
        Authenticate with email and password.

        Credential syntax is checked before the backend is called. On failure
        the user-facing message is stored in `last_error`, the status is left
        unchanged and the failure is re-raised.

        Raises:
            ValidationFailure: malformed email or empty password.
            ApiError: the backend rejected the login or was unreachable.
        """
        self.is_loading = True
        self.last_error = None
        try:
            if not isinstance(credentials, Credentials):
                credentials = Credentials(**dict(credentials))
            email = self._validate_credentials(credentials.email, credentials.password)
            body = await self._transport.post(
                self.settings.auth_login_path,
                json={"email": email, "password": credentials.password},
            )
            identity = self._extract_identity(body)
            if identity is None:
                raise ApiError("Login response did not include a user identity.")

            async with self._lock:
                self._authenticate(identity)
            logger.info(f"SESSION: Login successful for {email}")
            return identity
        except ValidationFailure as e:
            self.last_error = e.message
            logger.warning(f"SESSION: Login rejected before submit: {e.field}: {e.message}")
            raise
        except ApiError as e:
            self.last_error = describe_failure(e, context="login")
            logger.warning(f"SESSION: Login failed: {e.message}")
            raise
        finally:
            self.is_loading = False

    async def register(self, registration: Mapping[str, Any]) -> Optional[Identity]:
        """
        Create a backend account. Does not authenticate the client session.

        Raises:
            ValidationFailure: malformed email or empty password.
            ApiError: the backend rejected the registration.
        """
        self.is_loading = True
        self.last_error = None
        try:
            email = self._validate_credentials(registration.get("email"), registration.get("password"))
            payload = {
                "email": email,
                "password": registration.get("password"),
                "firstName": (registration.get("firstName") or "").strip() or None,
                "lastName": (registration.get("lastName") or "").strip() or None,
            }
            body = await self._transport.post(self.settings.auth_register_path, json=payload)
            logger.info(f"SESSION: Registration successful for {email}")
            return self._extract_identity(body)
        except ValidationFailure as e:
            self.last_error = e.message
            raise
        except ApiError as e:
            self.last_error = describe_failure(e)
            logger.warning(f"SESSION: Registration failed: {e.message}")
            raise
        finally:
            self.is_loading = False

    async def logout(self) -> None:
        """
        Invalidate the backend session, then clear local state.

        The backend call is best-effort: its failure never prevents the local
        session from being cleared and the monitor from being stopped.
        """
        self.is_loading = True
        self.monitor.stop()
        try:
            await self._transport.post(self.settings.auth_logout_path)
            logger.info("SESSION: Logout acknowledged by backend")
        except Exception as e:
            logger.error(f"SESSION: Logout request failed: {e}. Clearing local session anyway.")
        finally:
            await self.clear_session()
            self.is_loading = False

    async def force_logout(self, reason: str = "forced", redirect: bool = True) -> None:
        """
        Log out on behalf of the monitor, the guard or a failed renewal.

        With `redirect`, the navigator is sent to the login view with the
        `session=expired` marker unless it is already there.
        """
        logger.warning(f"SESSION: Force logout triggered ({reason})")
        self._transport.security_log.log_event("session-expired", {"reason": reason}, severity="low")
        await self.logout()
        if redirect:
            await self._redirect_expired()

    async def check_auth(self) -> Optional[Identity]:
        """
        Ask the backend who is logged in. Runs at most once per client lifetime.

        Concurrent callers share the single in-flight check; later callers get
        the current identity without another backend query.
        """
        if self._check_task is None:
            if self._session.status != SessionStatus.UNCHECKED:
                self._auth_checked = True
                return self._session.identity
            self._check_task = asyncio.ensure_future(self._run_check_auth())
        if not self._check_task.done():
            await asyncio.shield(self._check_task)
        return self._session.identity

    async def renew(self) -> Optional[Identity]:
        """
        Call the refresh endpoint and record the outcome on success.

        Failures propagate untouched; giving up is the refresh coordinator's job.
        """
        body = await self._transport.post(self.settings.auth_refresh_path)
        identity = self._extract_identity(body)
        async with self._lock:
            if self._session.status == SessionStatus.AUTHENTICATED:
                if identity is not None:
                    self._session.identity = identity
                self._session.last_activity_at = self._clock()
        logger.info(f"SESSION: Session renewed (identity updated: {identity is not None})")
        return identity

    async def clear_session(self) -> None:
        async with self._lock:
            self._reset()
        logger.info("SESSION: Local session cleared")

    def touch(self) -> None:
        """Record user or network activity on an authenticated session."""
        if self._session.status == SessionStatus.AUTHENTICATED:
            self._session.last_activity_at = self._clock()

    def set_idle_timeout(self, timeout_ms: int) -> None:
        self._session.idle_timeout_ms = timeout_ms

    def clear_error(self) -> None:
        self.last_error = None

    async def aclose(self) -> None:
        """Stop the monitor and wind down a pending auth check. Session state is kept."""
        await self.monitor.aclose()
        task = self._check_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # Internals

    async def _run_check_auth(self) -> None:
        async with self._lock:
            self._session.status = SessionStatus.CHECKING
        try:
            body = await self._transport.get(self.settings.current_user_path)
            identity = self._extract_identity(body, allow_bare=True)
            if identity is None:
                logger.info("SESSION: No current user reported by backend")
                await self.clear_session()
                return
            async with self._lock:
                self._authenticate(identity)
            logger.info(f"SESSION: Existing session restored for {identity.email}")
        except Exception as e:
            logger.info(f"SESSION: Auth check failed, treating client as logged out: {e}")
            await self.clear_session()
        finally:
            self._auth_checked = True

    def _authenticate(self, identity: Identity) -> None:
        # Caller holds self._lock
        self._session.identity = identity
        self._session.status = SessionStatus.AUTHENTICATED
        self._session.last_activity_at = self._clock()
        self.monitor.start()

    def _reset(self) -> None:
        # Caller holds self._lock
        self.monitor.stop()
        self._session.status = SessionStatus.UNAUTHENTICATED
        self._session.identity = None
        self._session.last_activity_at = None

    async def _on_idle_timeout(self) -> None:
        await self.force_logout("idle-timeout")

    async def _redirect_expired(self) -> None:
        navigator = self.navigator
        login_route = self.settings.login_route
        if navigator is None or navigator.current_path == login_route:
            return
        try:
            await navigator.push(login_route, {"session": "expired"})
        except Exception as e:
            logger.error(f"SESSION: Redirect to login after forced logout failed: {e}", exc_info=True)

    @staticmethod
    def _validate_credentials(email: Any, password: Any) -> str:
        email = email.strip().lower() if isinstance(email, str) else ""
        if not is_valid_email(email):
            raise ValidationFailure("email", "Please enter a valid email address")
        if not isinstance(password, str) or not password:
            raise ValidationFailure("password", "Please enter your password")
        return email

    @staticmethod
    def _extract_identity(body: Any, allow_bare: bool = False) -> Optional[Identity]:
        if not isinstance(body, dict):
            return None
        for key in ("identity", "user"):
            if isinstance(body.get(key), dict):
                return Identity.model_validate(body[key])
        if allow_bare and body:
            return Identity.model_validate(body)
        return None
