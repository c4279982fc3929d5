"""Session helpers for the content repository database."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ingestion.db.models import Base
from ingestion.settings import Settings, get_settings

_ENGINE: Engine | None = None
_SESSIONMAKER: sessionmaker[Session] | None = None
_CURRENT_DSN: str | None = None


def get_engine(settings: Settings | None = None) -> Engine:
    """Return a memoized SQLAlchemy engine, rebuilt when the DSN changes."""
    global _ENGINE, _SESSIONMAKER, _CURRENT_DSN

    config = settings or get_settings()
    if _ENGINE is None or _CURRENT_DSN != config.postgres_dsn:
        connect_args = {"check_same_thread": False} if config.postgres_dsn.startswith("sqlite") else {}
        _ENGINE = create_engine(config.postgres_dsn, future=True, pool_pre_ping=True, connect_args=connect_args)
        _SESSIONMAKER = sessionmaker(
            bind=_ENGINE,
            expire_on_commit=False,
            autoflush=False,
            future=True,
        )
        _CURRENT_DSN = config.postgres_dsn
    return _ENGINE


def get_sessionmaker(settings: Settings | None = None) -> sessionmaker[Session]:
    """Return a memoized sessionmaker."""
    get_engine(settings)
    assert _SESSIONMAKER is not None  # for mypy
    return _SESSIONMAKER


def ensure_schema(settings: Settings | None = None) -> None:
    # local runs/tests: create tables if missing (idempotent)
    Base.metadata.create_all(bind=get_engine(settings))


@contextmanager
def session_scope(settings: Settings | None = None) -> Iterator[Session]:
    """Provide a transactional scope for DB operations."""
    session = get_sessionmaker(settings)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
