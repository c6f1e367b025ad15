# uswap_monitor/db.py
"""Cursor database engine and sessions"""

import logging
import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from uswap_monitor.models.db import Base

logger = logging.getLogger(__name__)

class Database:
    """Engine and session factory shared by all poller threads"""

    def __init__(self, url: str):
        self.url = url
        self._engine = None
        self._SessionLocal = None

    def _engine_options(self) -> dict:
        """
        Engine options for the configured backend.

        SQLite connections are shared between poller threads, and the
        database directory is created if it does not exist yet.
        """
        parsed = make_url(self.url)
        if parsed.get_backend_name() != 'sqlite':
            return {'pool_pre_ping': True}

        if parsed.database and parsed.database != ':memory:':
            directory = os.path.dirname(parsed.database)
            if directory:
                os.makedirs(directory, exist_ok=True)
        return {'connect_args': {'check_same_thread': False}}

    def init(self) -> None:
        """Connect and create the cursor table if it is missing"""
        try:
            self._engine = create_engine(self.url, **self._engine_options())
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine)
        except SQLAlchemyError as e:
            logger.error(f"Cannot open cursor database {make_url(self.url).render_as_string(hide_password=True)}: {e}")
            raise
        logger.info(f"Cursor database ready ({self._engine.dialect.name})")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """One unit of work: committed on clean exit, rolled back on any exception"""
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Close pooled connections. Safe to call more than once."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None
