# cli/core/api.py
import asyncio
from collections import Counter
from typing import Awaitable, Callable, TypeVar

from . import config
from .refresh import AuthClient
from .session import SessionTokenStorage, load_session, restore_cookies, save_cookies

T = TypeVar("T")


def open_client() -> AuthClient:
    """
    Builds a client from the saved session (cookies and header token).
    """
    session = load_session()
    return AuthClient(
        config.BASE_URL,
        policy=config.TRANSPORT,
        storage=SessionTokenStorage(),
        access_token_max_age=config.ACCESS_TOKEN_MAX_AGE,
        cookies=restore_cookies(session.get("cookies", [])),
    )


def run_with_client(operation: Callable[[AuthClient], Awaitable[T]]) -> T:
    """
    Runs ``operation`` on a fresh client and writes the cookie jar back to
    the session file, whether the call succeeded or not.
    """
    async def runner() -> T:
        async with open_client() as client:
            try:
                return await operation(client)
            finally:
                save_cookies(client.cookies)

    return asyncio.run(runner())


def api_login(username: str, password: str) -> dict:
    return run_with_client(lambda client: client.login(username, password))


def api_logout() -> dict:
    return run_with_client(lambda client: client.logout())


def api_me() -> dict:
    return run_with_client(lambda client: client.me())


def api_protected() -> dict:
    return run_with_client(lambda client: client.protected())


def api_refresh() -> dict:
    return run_with_client(lambda client: client.refresh())


def api_burst(count: int) -> tuple[list, Counter]:
    """
    Fires ``count`` concurrent protected calls through one client.
    Returns the per-call results (dict or exception) and the request counts per path.
    """
    async def burst(client: AuthClient):
        results = await asyncio.gather(*(client.protected() for _ in range(count)), return_exceptions=True)
        return results, client.stats

    return run_with_client(burst)
