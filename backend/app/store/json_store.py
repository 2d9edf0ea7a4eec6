import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from ..models.User import User
from .base import TokenStore

logger = logging.getLogger(__name__)


class JsonFileStore(TokenStore):
    """
    Keeps users and issued refresh tokens in one JSON document:

        {"users": [{"id", "username", "password", "name"}], "refreshTokens": [...]}

    Every operation is a full read-modify-write under a process-wide lock.
    Writes go to a temporary file first and are swapped in with os.replace.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def load(self) -> dict[str, Any]:
        with self._lock:
            if not self.path.exists():
                return {"users": [], "refreshTokens": []}
            with open(self.path, "r", encoding="utf-8") as f:
                state = json.load(f)
            state.setdefault("users", [])
            state.setdefault("refreshTokens", [])
            return state

    def save(self, state: dict[str, Any]) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2)
            os.replace(tmp_path, self.path)

    def ensure_exists(self) -> None:
        with self._lock:
            if not self.path.exists():
                self.save({"users": [], "refreshTokens": []})
                logger.info("Created %s with an empty document", self.path)

    def get_user(self, user_id: int) -> User | None:
        for record in self.load()["users"]:
            if record.get("id") == user_id:
                return User(**record)
        return None

    def get_user_by_username(self, username: str) -> User | None:
        for record in self.load()["users"]:
            if record.get("username") == username:
                return User(**record)
        return None

    def add_user(self, user: User) -> User:
        with self._lock:
            state = self.load()
            if user.id is None:
                user.id = max((u["id"] for u in state["users"]), default=0) + 1
            state["users"].append(
                {"id": user.id, "username": user.username, "password": user.password, "name": user.name}
            )
            self.save(state)
        return user

    def add_refresh_token(self, token: str) -> None:
        with self._lock:
            state = self.load()
            state["refreshTokens"].append(token)
            self.save(state)

    def remove_refresh_token(self, token: str) -> bool:
        with self._lock:
            state = self.load()
            if token not in state["refreshTokens"]:
                return False
            state["refreshTokens"] = [t for t in state["refreshTokens"] if t != token]
            self.save(state)
            return True

    def has_refresh_token(self, token: str) -> bool:
        return token in self.load()["refreshTokens"]

    def refresh_tokens(self) -> list[str]:
        return list(self.load()["refreshTokens"])
