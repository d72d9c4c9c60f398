"""
SQLAlchemy engine, sessions and the commit helper.

Production runs on PostgreSQL through psycopg; tests and quick local runs
use SQLite.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from shared.config.settings import settings


def engine_options(url: str) -> dict[str, Any]:
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_recycle": 1800,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, closed afterwards."""
    with SessionLocal() as db:
        yield db


@contextmanager
def get_db_context() -> Iterator[Session]:
    """The same session lifecycle for the CLI, the seed and health checks."""
    with SessionLocal() as db:
        yield db


def safe_commit(db: Session) -> None:
    """
    Commit, or roll back and re-raise.

    Callers translate the re-raised error (StaleDataError, IntegrityError)
    into a domain error.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
