# db.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///hockey_stats.db"

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Store:
    """
    The persistent store as seen by the rest of the app: one engine plus a
    session factory. Constructed once at startup by `open_store()`.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def init_db(self) -> None:
        # register models with Base metadata before create_all
        import models_normalized  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Yields a session, commits on success, rolls back on error.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


def open_store(db_url: Optional[str], **engine_kwargs) -> Optional[Store]:
    """
    Capability check for the database.

    Returns a ready Store (tables created) or None when no URL is configured
    or the database can't be reached. Handlers branch on None.
    """
    if not db_url:
        logger.warning("No DATABASE_URL configured; running without a store")
        return None

    try:
        engine = create_engine(db_url, future=True, echo=False, **engine_kwargs)
        store = Store(engine)
        store.ping()
        store.init_db()
    except SQLAlchemyError as e:
        logger.warning(
            "Database unavailable; running without a store",
            extra={"operation": "open_store", "error": str(e)},
        )
        return None

    return store
