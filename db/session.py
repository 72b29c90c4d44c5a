"""
db/session.py

PostgreSQL engine and per-request sessions for the import service.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from functools import lru_cache
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


def pool_options() -> dict[str, Any]:
    """Engine keyword arguments read from SQL_ECHO and the DB_POOL_* variables."""
    options: dict[str, Any] = {
        "echo": os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        "pool_pre_ping": True,
    }
    for key, env_name, default in (
        ("pool_recycle", "DB_POOL_RECYCLE", 1800),
        ("pool_size", "DB_POOL_SIZE", 5),
        ("max_overflow", "DB_MAX_OVERFLOW", 10),
    ):
        try:
            options[key] = int(os.getenv(env_name, ""))
        except ValueError:
            options[key] = default
    return options


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")
    return create_engine(database_url, **pool_options())


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    """Open a new session on the shared engine."""
    return _session_factory()()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
