"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Generator, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the configured dialect."""
    kwargs: dict[str, Any] = {"echo": settings.database_echo, "future": True}
    if db_url.startswith("sqlite"):
        # Requests are served from a threadpool (asyncio.to_thread)
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update({"pool_pre_ping": True, "pool_recycle": 300})
    return kwargs


engine: Engine = create_engine(settings.database_url, **_build_engine_kwargs(settings.database_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """
    Session for work running outside a request (Celery tasks, post-commit hooks).

    Commits on success, rolls back on any error, always closes.
    """
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = ["Base", "SessionLocal", "engine", "get_db", "session_scope"]
