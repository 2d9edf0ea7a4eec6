"""Shared builders for the token lifecycle tests."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from backend.app.auth.service import TokenIssuer
from backend.app.core.database import make_engine
from backend.app.core.init_db import DEMO_USERS
from backend.app.core.security import get_password_hash
from backend.app.models.User import User
from backend.app.store.json_store import JsonFileStore
from backend.app.store.sql_store import SQLModelStore

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"

# argon2 is slow on purpose; hash the demo passwords once per run
_HASHES = {u["username"]: get_password_hash(u["password"]) for u in DEMO_USERS}


def seed(store):
    for record in DEMO_USERS:
        store.add_user(
            User(id=record["id"], username=record["username"], password=_HASHES[record["username"]], name=record["name"])
        )
    return store


def json_store(tmpdir: str | None = None) -> JsonFileStore:
    tmpdir = tmpdir or tempfile.mkdtemp(prefix="tokendemo-json-")
    return seed(JsonFileStore(Path(tmpdir) / "db.json"))


def sql_store(tmpdir: str | None = None) -> SQLModelStore:
    tmpdir = tmpdir or tempfile.mkdtemp(prefix="tokendemo-sql-")
    return seed(SQLModelStore(make_engine(f"sqlite:///{tmpdir}/tokendemo.db")))


class FakeClock:
    """Issuance clock that can be moved relative to real time."""

    def __init__(self):
        self.offset = timedelta()

    def __call__(self) -> datetime:
        return datetime.now(timezone.utc) + self.offset

    def rewind(self, seconds: float) -> None:
        self.offset = timedelta(seconds=-seconds)

    def reset(self) -> None:
        self.offset = timedelta()


def make_issuer(store=None, clock=None) -> TokenIssuer:
    return TokenIssuer(
        store=store if store is not None else json_store(),
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        clock=clock or FakeClock(),
    )
