"""
Database handle.
Owns the SQLAlchemy engine and session factory with an explicit open/close lifecycle.
"""
import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from studybuddy.exceptions import DatabaseException

logger = logging.getLogger("studybuddy.database")

Base = declarative_base()


class Database:
    """Connection handle passed to services, the poller and the API"""

    def __init__(self, url: str):
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DatabaseException("access", "database handle is not open")
        return self._engine

    def open(self) -> "Database":
        """Create the engine. Opening an already open handle is a no-op."""
        if self._engine is not None:
            return self

        kwargs = {}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory databases live as long as their single connection
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite:///"):
                kwargs["poolclass"] = StaticPool

        self._engine = create_engine(self.url, **kwargs)
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self._engine
        )
        logger.info(f"Database opened: {self._engine.url.render_as_string(hide_password=True)}")
        return self

    def close(self) -> None:
        """Dispose of the engine and its pooled connections"""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database closed")

    def create_all(self) -> None:
        """Create missing tables for all registered models"""
        from studybuddy import models  # noqa: F401  register models with Base
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        """Return a new session bound to this handle"""
        if self._session_factory is None:
            raise DatabaseException("session", "database handle is not open")
        return self._session_factory()

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
