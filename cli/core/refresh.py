# cli/core/refresh.py
import asyncio
import enum
import logging
from collections import Counter
from typing import Any, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"


class TransportPolicy(str, enum.Enum):
    COOKIE = "cookie"
    HEADER = "header"
    BOTH = "both"

    @property
    def uses_header(self) -> bool:
        return self in (TransportPolicy.HEADER, TransportPolicy.BOTH)


class TokenStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryTokenStorage:
    """
    Token storage that lives as long as the process.
    """

    def __init__(self, initial: Optional[dict] = None):
        self._values = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class AuthClient:
    """
    HTTP client that attaches the current access credential and recovers
    from expired credentials with a single shared refresh.

    When a request comes back 401 and no refresh is running, this client
    posts once to the refresh endpoint. Every other request that fails
    with 401 while that refresh is in flight waits on a future in
    ``_pending`` instead of starting its own. When the refresh settles all
    waiters are released together: on success each replays once with the
    new credential, on failure each raises the refresh's error.
    The refresh runs as a separate task, so it settles and releases the
    queue even when the request that started it is cancelled.

    Non-2xx responses are raised as ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        base_url: str,
        policy: TransportPolicy = TransportPolicy.COOKIE,
        storage: Optional[TokenStorage] = None,
        access_token_max_age: Optional[int] = None,
        login_path: str = "/login",
        refresh_path: str = "/refresh-token",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cookies: Optional[httpx.Cookies] = None,
        timeout: float = 10.0,
    ):
        self.policy = TransportPolicy(policy)
        self.storage = storage if storage is not None else MemoryTokenStorage()
        self.access_token_max_age = access_token_max_age
        self.login_path = login_path
        self.refresh_path = refresh_path
        self.stats: Counter = Counter()
        self._http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            cookies=cookies,
            timeout=timeout,
            event_hooks={"request": [self._record_request]},
        )

        self._refresh_task: Optional[asyncio.Task] = None
        self._pending: list[asyncio.Future] = []

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _record_request(self, request: httpx.Request) -> None:
        # Requests actually sent, keyed by path
        self.stats[request.url.path] += 1

    @property
    def cookies(self) -> httpx.Cookies:
        return self._http.cookies

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await self._dispatch(method, url, kwargs, retried=False)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    def _is_auth_call(self, url: str) -> bool:
        path = httpx.URL(url).path
        return path in (self.login_path, self.refresh_path)

    def _build(self, method: str, url: str, kwargs: dict) -> httpx.Request:
        request = self._http.build_request(method, url, **kwargs)
        if self.policy.uses_header:
            token = self.storage.get(ACCESS_TOKEN_KEY)
            if token:
                request.headers["Authorization"] = f"Bearer {token}"
        return request

    def _remember_token(self, response: httpx.Response) -> None:
        if not self.policy.uses_header:
            return
        if "application/json" not in response.headers.get("content-type", ""):
            return
        body = response.json()
        if isinstance(body, dict) and body.get(ACCESS_TOKEN_KEY):
            self.storage.set(ACCESS_TOKEN_KEY, body[ACCESS_TOKEN_KEY])

    async def _dispatch(self, method: str, url: str, kwargs: dict, retried: bool) -> httpx.Response:
        response = await self._http.send(self._build(method, url, kwargs))
        if response.is_success:
            self._remember_token(response)
            return response

        if response.status_code != 401 or retried or self._is_auth_call(url):
            response.raise_for_status()

        if self.is_refreshing:
            waiter = asyncio.get_running_loop().create_future()
            self._pending.append(waiter)
            logger.debug("%s %s waiting for in-flight refresh", method, url)
            await waiter
            return await self._dispatch(method, url, kwargs, retried=True)

        await self._refresh_once()
        return await self._dispatch(method, url, kwargs, retried=True)

    # ------------------------------------------------------------------
    # Single-flight refresh
    # ------------------------------------------------------------------

    async def _refresh_once(self) -> httpx.Response:
        # The refresh is its own task; cancelling a caller must not strand the queue
        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._run_refresh())
        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self) -> httpx.Response:
        try:
            response = await self._send_refresh()
        except BaseException as e:
            logger.info("Refresh failed: %r", e)
            if self.policy.uses_header:
                self.storage.remove(ACCESS_TOKEN_KEY)
            self._release(error=e)
            raise
        else:
            self._remember_token(response)
            self._release()
            return response
        finally:
            self._refresh_task = None

    def _release(self, error: Optional[BaseException] = None) -> None:
        pending, self._pending = self._pending, []
        for waiter in pending:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(None)
            elif isinstance(error, asyncio.CancelledError):
                waiter.cancel()
            else:
                waiter.set_exception(error)
        logger.debug("Released %d queued request(s)", len(pending))

    async def _send_refresh(self) -> httpx.Response:
        body = None
        if self.access_token_max_age is not None:
            body = {"accessTokenMaxAge": self.access_token_max_age}
        response = await self._http.post(self.refresh_path, json=body)
        response.raise_for_status()
        return response

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> dict:
        payload = {"username": username, "password": password}
        if self.access_token_max_age is not None:
            payload["accessTokenMaxAge"] = self.access_token_max_age
        response = await self.post(self.login_path, json=payload)
        return response.json()

    async def refresh(self) -> dict:
        """
        Explicit refresh. Joins an in-flight refresh instead of starting a second one.
        """
        response = await self._refresh_once()
        return response.json()

    async def me(self) -> dict:
        response = await self.get("/me")
        return response.json()

    async def protected(self) -> dict:
        response = await self.get("/protected")
        return response.json()

    async def logout(self) -> dict:
        try:
            response = await self.post("/logout")
            return response.json()
        finally:
            self.storage.remove(ACCESS_TOKEN_KEY)
            self._http.cookies.clear()
