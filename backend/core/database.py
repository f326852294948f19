# backend/core/database.py

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .query_logger import setup_query_logging


def is_memory_database(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_db_engine(database_url: str, **overrides: Any) -> Engine:
    """
    Build an engine for ``database_url`` with query logging attached.

    SQLite connections may cross threads, and an in-memory database is
    pinned to one connection so every session sees the same tables.
    Other backends get the configured pool sizing. ``overrides`` win over
    the defaults; ``connect_args`` are merged rather than replaced.
    """
    connect_args = dict(overrides.pop("connect_args", {}))
    engine_kwargs = {
        "echo": settings.log_sql_queries,
        "pool_pre_ping": True,
    }

    if make_url(database_url).get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, **connect_args}
        if is_memory_database(database_url):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow

    if connect_args:
        engine_kwargs["connect_args"] = connect_args
    engine_kwargs.update(overrides)

    engine = create_engine(database_url, **engine_kwargs)
    setup_query_logging(engine)
    return engine


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
