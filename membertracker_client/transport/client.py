# membertracker_client/transport/client.py
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import httpx

from ..security.events import SecurityEventLog, security_events
from ..settings import Settings, settings as default_settings
from .errors import ApiError, HttpFailure, NetworkFailure
from .models import RequestAttempt
from .retry_policy import RetryPolicy

if TYPE_CHECKING:
    from .refresh_coordinator import RefreshCoordinator

# Query parameter stamped on reads to defeat intermediate caches
CACHE_BUSTER_PARAM = "_t"

_transport_logger_instance = None


def _get_transport_logger(cfg: Settings) -> logging.Logger:
    """
    Returns a singleton logger for the transport.
    Level follows debug mode first, then the configured log level.
    """
    global _transport_logger_instance
    if _transport_logger_instance is None:
        _transport_logger_instance = logging.getLogger(__name__)
        effective_level = logging.DEBUG if cfg.debug_mode else cfg.log_level.upper()
        _transport_logger_instance.setLevel(effective_level)
    return _transport_logger_instance


def _cookie_path_matches(cookie_path: str, request_path: str) -> bool:
    """Cookie path-match rule from RFC 6265 section 5.1.4."""
    if request_path == cookie_path:
        return True
    if not request_path.startswith(cookie_path):
        return False
    return cookie_path.endswith("/") or request_path[len(cookie_path)] == "/"


class ApiTransport:
    """
    HTTP request pipeline for the backend API.

    Each logical call becomes one RequestAttempt which is dispatched, and on
    failure either resent by the RetryPolicy, renewed-and-replayed by the
    RefreshCoordinator, or surfaced to the caller as an ApiError.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        security_log: Optional[SecurityEventLog] = None
    ):
        self.settings = settings or default_settings
        self._client = http_client or httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.api_timeout_seconds,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        self.retry_policy = retry_policy or RetryPolicy(settings=self.settings)
        self.security_log = security_log or security_events
        self.refresh_coordinator: Optional["RefreshCoordinator"] = None
        # Called on every dispatch to refresh the session activity timestamp
        self.activity_hook: Optional[Callable[[], None]] = None
        self._last_nonce = 0
        self.logger = _get_transport_logger(self.settings)

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.request("GET", url, params=params, headers=headers)

    async def post(self, url: str, json: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.request("POST", url, json=json, headers=headers)

    async def put(self, url: str, json: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.request("PUT", url, json=json, headers=headers)

    async def patch(self, url: str, json: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.request("PATCH", url, json=json, headers=headers)

    async def delete(self, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.request("DELETE", url, headers=headers)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """Create a new logical call and send it. Returns the decoded body."""
        attempt = RequestAttempt(
            method=method,
            url=url,
            params=params or {},
            json_body=json,
            headers=headers or {},
        )
        return await self.send(attempt)

    async def send(self, attempt: RequestAttempt) -> Any:
        """
        Send `attempt` until it succeeds or a failure must be surfaced.

        Transient failures are resent per the retry policy. A 401 on an
        eligible call is handed to the refresh coordinator once; after a
        successful renewal the same attempt is sent again.

        Raises:
            NetworkFailure: no response after the retry budget is spent.
            HttpFailure: a non-2xx response that was not absorbed.
            AuthRenewalFailure: the session could not be renewed after a 401.
        """
        while True:
            try:
                response = await self._dispatch(attempt)
            except httpx.RequestError as e:
                failure = NetworkFailure(attempt.method, attempt.url, cause=e)
                if await self.retry_policy.wait_for_retry(attempt, failure):
                    continue
                self._log_failure(attempt, failure)
                raise failure from e

            if response.is_success:
                return self._decode_body(response)

            failure = HttpFailure(
                status=response.status_code,
                body=self._decode_body(response),
                method=attempt.method,
                url=attempt.url,
            )

            if response.status_code == 401:
                coordinator = self.refresh_coordinator
                if coordinator is not None and coordinator.should_handle(attempt):
                    # Raises AuthRenewalFailure when the renewal gives up
                    await coordinator.renew_for(attempt)
                    continue
            elif response.status_code == 403:
                self.security_log.log_event(
                    "forbidden-access",
                    {"method": attempt.method, "url": attempt.url},
                    severity="medium",
                )
            elif await self.retry_policy.wait_for_retry(attempt, failure):
                continue

            self._log_failure(attempt, failure)
            raise failure

    async def _dispatch(self, attempt: RequestAttempt) -> httpx.Response:
        """Send one HTTP request for `attempt` with per-call headers and params."""
        params = dict(attempt.params)
        if attempt.is_read:
            params[CACHE_BUSTER_PARAM] = self._next_nonce()

        headers = dict(attempt.headers)
        if attempt.is_mutating:
            csrf_token = self._csrf_token(attempt.url)
            if csrf_token:
                headers[self.settings.csrf_header_name] = csrf_token

        self._record_activity()

        self.logger.debug(
            f"TRANSPORT: Request {attempt.method} {attempt.url} "
            f"(retry {attempt.retry_count}, auth retry {attempt.is_auth_retry_attempted})"
        )
        request_kwargs: Dict[str, Any] = {"params": params or None, "headers": headers}
        if attempt.json_body is not None:
            request_kwargs["json"] = attempt.json_body
        response = await self._client.request(attempt.method, attempt.url, **request_kwargs)
        self.logger.debug(f"TRANSPORT: Response {response.status_code} {attempt.method} {attempt.url}")
        return response

    def _csrf_token(self, url: str) -> Optional[str]:
        """
        Value of the CSRF cookie for a request to `url`, or None when unset.

        The jar can hold the cookie several times under different paths, in
        which case the most specific path matching the request wins.
        """
        candidates = [cookie for cookie in self._client.cookies.jar if cookie.name == self.settings.csrf_cookie_name]
        if not candidates:
            return None
        request_path = self._request_path(url)
        matching = [cookie for cookie in candidates if _cookie_path_matches(cookie.path or "/", request_path)]
        if len(candidates) > 1:
            self.logger.debug(
                f"TRANSPORT: {len(candidates)} '{self.settings.csrf_cookie_name}' cookies in jar; "
                f"{len(matching)} match {request_path}"
            )
        chosen = sorted(matching or candidates, key=lambda cookie: len(cookie.path or ""))[-1]
        return chosen.value

    def _request_path(self, url: str) -> str:
        request_url = httpx.URL(url)
        if request_url.is_absolute_url:
            return request_url.path
        return self._client.base_url.path.rstrip("/") + "/" + request_url.path.lstrip("/")

    def _next_nonce(self) -> int:
        # Millisecond timestamp, forced strictly increasing
        nonce = max(int(time.time() * 1000), self._last_nonce + 1)
        self._last_nonce = nonce
        return nonce

    def _record_activity(self) -> None:
        if self.activity_hook is None:
            return
        try:
            self.activity_hook()
        except Exception as e:
            self.logger.warning(f"TRANSPORT: Activity timestamp update failed: {e}", exc_info=True)

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _log_failure(self, attempt: RequestAttempt, failure: ApiError) -> None:
        self.logger.error(
            f"TRANSPORT: API error on {attempt.method} {attempt.url}: {failure.message} "
            f"(status={getattr(failure, 'status', None)}, data={getattr(failure, 'body', None)!r})"
        )
