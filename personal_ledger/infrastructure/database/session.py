"""Database session management: an explicitly owned store handle"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from personal_ledger.config import settings
from personal_ledger.domain.exceptions import PersistenceError
from personal_ledger.infrastructure.database.models import Base


class Store:
    """
    Owns the SQLAlchemy engine and hands out transactional sessions.

    Created by the top-level process and passed to every engine component;
    ``dispose`` must run only after the sweep scheduler has stopped.
    """

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url or settings.database_url

        if self.database_url.startswith("sqlite"):
            # Scheduler thread and request path share the same engine
            self.engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False},
            )
        else:
            # Server-side now() stamps UTC, as SQLite's CURRENT_TIMESTAMP does
            connect_args = {"options": "-c timezone=utc"} if self.database_url.startswith("postgresql") else {}
            # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
            self.engine = create_engine(
                self.database_url,
                connect_args=connect_args,
                pool_pre_ping=True,  # Verify connections before using
                pool_size=10,
                max_overflow=10,
                pool_recycle=3600,
            )

        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_schema(self) -> None:
        """Create any missing tables"""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not create schema: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unit of work: begin, yield the session, commit.

        Any failure rolls the whole unit back. Store errors surface as
        PersistenceError, domain errors propagate unchanged.
        """
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logging.error(f"Store transaction rolled back: {e}")
            raise PersistenceError(str(e)) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        """Close pooled connections"""
        self.engine.dispose()
