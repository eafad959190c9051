"""
PostgreSQL connection handle.

One `Database` is built per process (see app.main lifespan) and passed to
whatever needs the store, instead of a module-level engine.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings
from app.db.schema import ReconcileReport, reconcile_schema

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    """
    Create engine with a bounded connection pool.

    pool_size: hard cap on connections (no overflow)
    pool_recycle: connections idle/older than DB_IDLE_TIMEOUT are replaced
    connect_timeout: libpq connect timeout in seconds
    """
    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_idle_timeout,
        pool_pre_ping=True,
        connect_args={
            "connect_timeout": settings.db_connect_timeout,
            "sslmode": settings.db_sslmode,
        },
        echo=settings.debug  # Log SQL queries in debug mode
    )


class Database:
    """Store handle: owns the engine and its session factory."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(build_engine(settings))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager for database sessions.
        Usage:
            with db.session() as s:
                s.execute(text("SELECT * FROM applications"))
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def server_time(self) -> datetime:
        with self.session() as s:
            return s.execute(text("SELECT NOW() AS db_time")).scalar()

    def ping(self) -> bool:
        """Return True if PostgreSQL is reachable."""
        try:
            with self.session() as s:
                return s.execute(text("SELECT 1")).scalar() == 1
        except Exception as e:
            logger.warning("PostgreSQL connection failed: %s", e)
            return False

    def reconcile(self) -> ReconcileReport:
        return reconcile_schema(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
