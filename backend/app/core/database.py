from pathlib import Path

from sqlmodel import SQLModel, create_engine
from .settings import settings

def make_engine(url: str = settings.DATABASE_URL):
    connect_args = {}
    if url.startswith("sqlite"):
        # check_same_thread=False is needed only for SQLite
        connect_args = {"check_same_thread": False}
        if url.startswith("sqlite:///"):
            Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args=connect_args)

def create_db_and_tables(engine):
    SQLModel.metadata.create_all(engine)
