from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from fintrack.settings import get_settings


def _default_sqlite_url() -> str:
    # fallback dev: backend/data/fintrack.db
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    db_path = settings.data_dir / "fintrack.db"
    return f"sqlite:///{db_path.as_posix()}"


def get_database_url() -> str:
    url = get_settings().database_url
    if url:
        return url
    return _default_sqlite_url()


def make_engine(url: str) -> Engine:
    # sqlite needs check_same_thread for FastAPI sync access
    connect_args = {}
    if url.startswith("sqlite:///"):
        connect_args = {"check_same_thread": False}

    return create_engine(url, future=True, connect_args=connect_args)


@lru_cache
def get_engine() -> Engine:
    return make_engine(get_database_url())


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(engine: Engine) -> None:
    # import here to avoid circular imports
    from fintrack.repositories.sql_ledger_repository import AccountRow, TransactionRow  # noqa: F401
    from fintrack.db_base import Base

    Base.metadata.create_all(engine)
