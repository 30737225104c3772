from __future__ import annotations

import logging
from typing import Any, Generator

from fastapi import Request
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from boba_pos.core.config import (
    DB_CONNECT_TIMEOUT_SECONDS,
    DB_ECHO,
    DB_MAX_OVERFLOW,
    DB_POOL_RECYCLE_SECONDS,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT_SECONDS,
    DB_SSL,
)

logger = logging.getLogger(__name__)
STORAGE_PREFIX = "[STORAGE]"


class Base(DeclarativeBase):
    pass


def _engine_kwargs(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    connect_args: dict[str, Any] = {"connect_timeout": DB_CONNECT_TIMEOUT_SECONDS}
    if DB_SSL:
        connect_args["sslmode"] = "require"
    return {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT_SECONDS,
        "pool_recycle": DB_POOL_RECYCLE_SECONDS,
        "pool_pre_ping": True,
        "connect_args": connect_args,
    }


class StorageClient:
    """Owns the engine and session factory for one process.

    Constructed by the entry point at startup and disposed on shutdown;
    services receive sessions from it instead of importing a global pool.
    """

    def __init__(self, url: str, engine: Engine | None = None):
        self.url = url
        self.engine = engine or create_engine(url, echo=DB_ECHO, **_engine_kwargs(url))
        self.session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        import boba_pos.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def has_table(self, table_name: str) -> bool:
        return inspect(self.engine).has_table(table_name)

    def dispose(self) -> None:
        logger.info("%s disposing engine dialect=%s", STORAGE_PREFIX, self.engine.dialect.name)
        self.engine.dispose()


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


def get_db(request: Request) -> Generator[Session, None, None]:
    db = get_storage(request).session()
    try:
        yield db
    finally:
        db.close()
