"""Engine and session plumbing for the user store."""

from __future__ import annotations

from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from tourbook.settings import settings

_engine: Engine | None = None


def build_engine(url: str) -> Engine:
    """
    Create an engine for ``url``. SQLite connections are shared with the
    threadpool that runs the sync handlers, and an in-memory database is
    pinned to one connection so every session sees the same tables.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=False, **kwargs)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url)
    return _engine


def set_engine(engine: Engine | None) -> None:
    """Swap the process-wide engine; tests install an in-memory one."""
    global _engine
    _engine = engine


def init_db(*, bind: Optional[Engine] = None) -> None:
    """Create the user and security_events tables if they are missing."""
    from tourbook.audit.models import AuditLog  # noqa: F401
    from tourbook.auth.user_model import User  # noqa: F401

    SQLModel.metadata.create_all(bind=bind or get_engine())


def get_session() -> Iterator[Session]:
    """FastAPI dependency: one session per request, closed afterwards."""
    with Session(get_engine()) as session:
        yield session
