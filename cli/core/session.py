# cli/core/session.py
import json
import logging
from typing import Optional

import httpx

from . import config

logger = logging.getLogger(__name__)


def load_session() -> dict:
    """
    Reads the session file. Returns an empty session if it does not exist
    or cannot be parsed.
    """
    if not config.SESSION_FILE.exists():
        return {}

    try:
        with open(config.SESSION_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable session file %s: %s", config.SESSION_FILE, e)
        return {}
    return data if isinstance(data, dict) else {}


def save_session(data: dict) -> None:
    config.APP_DIR.mkdir(parents=True, exist_ok=True)
    with open(config.SESSION_FILE, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def clear_session() -> None:
    """
    Deletes the session file, ending the local session.
    """
    if config.SESSION_FILE.exists():
        config.SESSION_FILE.unlink()


def dump_cookies(cookies: httpx.Cookies) -> list[dict]:
    return [
        {"name": c.name, "value": c.value, "domain": c.domain, "path": c.path}
        for c in cookies.jar
    ]


def restore_cookies(entries: list[dict]) -> httpx.Cookies:
    cookies = httpx.Cookies()
    for entry in entries:
        cookies.set(entry["name"], entry["value"], domain=entry.get("domain", ""), path=entry.get("path", "/"))
    return cookies


def save_cookies(cookies: httpx.Cookies) -> None:
    data = load_session()
    data["cookies"] = dump_cookies(cookies)
    save_session(data)


def is_logged_in() -> bool:
    data = load_session()
    if data.get("accessToken"):
        return True
    return any(c.get("name") == "refreshToken" for c in data.get("cookies", []))


class SessionTokenStorage:
    """
    Token storage backed by the session file, so a header token survives
    between CLI invocations.
    """

    def get(self, key: str) -> Optional[str]:
        return load_session().get(key)

    def set(self, key: str, value: str) -> None:
        data = load_session()
        data[key] = value
        save_session(data)

    def remove(self, key: str) -> None:
        data = load_session()
        if data.pop(key, None) is not None:
            save_session(data)
