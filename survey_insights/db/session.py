# survey_insights/db/session.py
from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from survey_insights.core.config import Settings
from survey_insights.core.errors import QueryError
from survey_insights.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _mask(u: str) -> str:
    """Masks the password in a connection URL so it can be logged."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", u)


class Store:
    """
    Engine + session factory for the relational store.

    Built once by the application lifespan and disposed on shutdown; request
    handlers get sessions through the `get_db` dependency.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        db_url = settings.db_url
        logger.info("[DB] Using: %s", _mask(db_url))

        if settings.is_sqlite:
            # One shared connection so in-memory databases survive across sessions
            self.engine = create_engine(
                db_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            timeout_ms = settings.STORE_TIMEOUT_SECONDS * 1000
            self.engine = create_engine(
                db_url,
                pool_size=5,
                max_overflow=10,
                pool_timeout=settings.STORE_TIMEOUT_SECONDS,
                pool_recycle=1800,
                pool_pre_ping=True,
                connect_args={
                    "connect_timeout": settings.STORE_TIMEOUT_SECONDS,
                    "options": f"-c statement_timeout={timeout_ms}",
                },
            )
        self.session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        from survey_insights.db.base import Base

        Base.metadata.create_all(bind=self.engine)

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(text("SELECT 1")).fetchone()
                return bool(row and row[0] == 1)
        except SQLAlchemyError as e:
            logger.error("[DB] Connection failed: %s", e)
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for FastAPI"""
    db = get_store(request).session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_call(db: Session, what: str) -> Iterator[None]:
    """
    Wraps a unit of store work; SQLAlchemy failures (statement timeouts
    included) are rolled back and re-raised as QueryError.
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Store call failed (%s): %s", what, e)
        raise QueryError(f"Store error while trying to {what}", details={"cause": str(e)}) from e


def read_with_retry(db: Session, what: str, fn: Callable[[], T], attempts: int = 2) -> T:
    """
    Runs an idempotent read, retrying on QueryError up to `attempts` times.
    Never use it for writes.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            with store_call(db, what):
                return fn()
        except QueryError:
            if attempt == attempts:
                raise
            logger.warning("Retrying read '%s' (%d/%d)", what, attempt + 1, attempts)
    raise QueryError(f"Store error while trying to {what}")
