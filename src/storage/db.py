"""SQLAlchemy engine/session primitives and health checks."""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Iterator, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from src.core.config import get_settings
from src.core.errors import StoreError
from src.core.logger import get_logger


Base = declarative_base()
logger = get_logger("makerhub.storage")


def _connect_args(database_url: str, timeout_seconds: int) -> dict[str, object]:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if database_url.startswith("postgresql"):
        return {
            "connect_timeout": timeout_seconds,
            "options": f"-c statement_timeout={timeout_seconds * 1000}",
        }
    return {}


@lru_cache(maxsize=1)
def get_engine():
    settings = get_settings()
    kwargs: dict[str, object] = {
        "pool_pre_ping": True,
        "future": True,
        "connect_args": _connect_args(settings.database_url, settings.store_timeout_seconds),
    }
    if not settings.database_url.startswith("sqlite"):
        kwargs["pool_timeout"] = settings.store_timeout_seconds

    return create_engine(settings.database_url, **kwargs)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, expire_on_commit=False)


def get_session() -> Generator[Session, None, None]:
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def store_guard(session: Session, operation: str) -> Iterator[None]:
    """Roll back and re-raise store failures as ``StoreError``.

    Callers that expect specific errors (``IntegrityError`` on a unique
    constraint) catch them inside the block before they reach this guard.
    """

    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("store_operation_failed", operation=operation, error=exc.__class__.__name__)
        raise StoreError() from exc


def test_connection() -> Tuple[bool, Optional[str]]:
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
        return True, None
    except Exception as exc:  # pragma: no cover
        return False, str(exc)


def load_models() -> None:
    """Import ORM models so Base metadata contains all mapped tables."""

    import src.storage.models  # noqa: F401
