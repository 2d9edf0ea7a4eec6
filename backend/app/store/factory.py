import logging

from ..core.database import make_engine
from ..core.settings import Settings
from .base import TokenStore
from .json_store import JsonFileStore
from .sql_store import SQLModelStore

logger = logging.getLogger(__name__)


def make_store(settings: Settings) -> TokenStore:
    if settings.STORE_BACKEND == "json":
        store = JsonFileStore(settings.DB_PATH)
        store.ensure_exists()
        logger.info("Using JSON document store at %s", settings.DB_PATH)
        return store
    if settings.STORE_BACKEND == "sql":
        logger.info("Using SQLModel store at %s", settings.DATABASE_URL)
        return SQLModelStore(make_engine(settings.DATABASE_URL))
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")
